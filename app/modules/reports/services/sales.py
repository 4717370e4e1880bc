"""
Shop sales report service. Only completed sales count.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import desc, func

from app.common.validators import money
from app.modules.shops.models import Sale, SaleItem, SaleStatus
from .base import BaseReportService

TOP_PRODUCTS_LIMIT = 10


class SalesReportService(BaseReportService):

    def _completed_sales(self, shop_id: Optional[UUID] = None):
        query = self.db.query(Sale).filter(
            Sale.tenant_id == self.tenant_id,
            Sale.status == SaleStatus.COMPLETED
        )
        if shop_id:
            query = query.filter(Sale.shop_id == shop_id)
        return self._apply_datetime_filter(query, Sale.created_at)

    def get_sales_report(self, shop_id: Optional[UUID] = None) -> Dict[str, Any]:
        sales = self._completed_sales(shop_id).order_by(Sale.created_at).all()

        totals = {
            "sales_count": len(sales),
            "total_revenue": Decimal("0"),
            "total_discount": Decimal("0"),
            "total_tax": Decimal("0"),
            "average_sale": Decimal("0")
        }
        by_day: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        by_method: Dict[str, Dict[str, Any]] = {}

        for sale in sales:
            total = money(sale.total)
            totals["total_revenue"] += total
            totals["total_discount"] += money(sale.discount)
            totals["total_tax"] += money(sale.tax)

            day = sale.created_at.strftime("%Y-%m-%d")
            day_bucket = by_day.setdefault(day, {"date": day, "total": Decimal("0"), "count": 0})
            day_bucket["total"] += total
            day_bucket["count"] += 1

            method = sale.payment_method.value
            method_bucket = by_method.setdefault(method, {"payment_method": method, "total": Decimal("0"), "count": 0})
            method_bucket["total"] += total
            method_bucket["count"] += 1

        if sales:
            totals["average_sale"] = money(totals["total_revenue"] / len(sales))

        revenue = func.sum(SaleItem.total)
        product_query = self.db.query(
            SaleItem.product_id,
            SaleItem.name,
            func.sum(SaleItem.quantity).label("quantity"),
            revenue.label("revenue")
        ).join(Sale, Sale.id == SaleItem.sale_id).filter(
            Sale.tenant_id == self.tenant_id,
            Sale.status == SaleStatus.COMPLETED
        )
        if shop_id:
            product_query = product_query.filter(Sale.shop_id == shop_id)
        product_rows = self._apply_datetime_filter(product_query, Sale.created_at).group_by(
            SaleItem.product_id, SaleItem.name
        ).order_by(desc(revenue)).limit(TOP_PRODUCTS_LIMIT).all()

        return {
            **self.period(),
            "totals": totals,
            "by_day": list(by_day.values()),
            "by_payment_method": sorted(by_method.values(), key=lambda m: m["total"], reverse=True),
            "top_products": [
                {
                    "product_id": row.product_id,
                    "name": row.name,
                    "quantity": money(row.quantity),
                    "revenue": money(row.revenue)
                }
                for row in product_rows
            ]
        }
