"""
Tiendas, productos y ventas de punto de venta.

La venta descuenta stock (mínimo 0) en la misma transacción. Las alertas de
stock bajo y la confirmación al cliente por WhatsApp se encolan después del
commit y nunca hacen fallar la venta.
"""
from datetime import timedelta, date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.modules.shops.models import Shop, Product, ProductVariant, Sale, SaleItem, SaleStatus
from app.modules.shops.schemas import (
    ShopCreate, ShopUpdate, ShopList, ProductCreate, ProductUpdate, ProductList, VariantCreate, VariantUpdate,
    SaleCreate, SaleUpdate, SaleList, SaleReceipt, SaleItemOut, ReceiptShop
)
from app.modules.auth.models import User, UserTenant, MembershipStatus
from app.modules.auth.dependencies import MANAGER_ROLES
from app.modules.customers.models import Customer
from app.modules.invoices.models import Invoice, InvoiceStatus, InvoiceSourceType, DiscountType
from app.modules.invoices.service import InvoiceService
from app.common.scoping import ensure_member
from app.common.sequences import next_document_number, DAILY
from app.common.validators import money

logger = logging.getLogger(__name__)

REQUIRED_VARIANT_FIELDS = ("name", "quantity_on_hand", "attributes", "is_active")


class ShopService:
    def __init__(self, db: Session):
        self.db = db

    def create_shop(self, data: ShopCreate, tenant_id: UUID) -> Shop:
        ensure_member(self.db, data.manager_id, tenant_id, "Manager")
        if data.code and self.db.query(Shop.id).filter(
            Shop.tenant_id == tenant_id, Shop.code == data.code
        ).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Shop code {data.code} already exists")

        payload = data.model_dump(exclude={"metadata"})
        shop = Shop(tenant_id=tenant_id, metadata_=data.metadata or {}, **payload)
        self.db.add(shop)
        self.db.commit()
        self.db.refresh(shop)
        return shop

    def get_shops(self, tenant_id: UUID, limit: int = 100, offset: int = 0,
                  is_active: Optional[bool] = None, search: Optional[str] = None) -> ShopList:
        query = self.db.query(Shop).filter(Shop.tenant_id == tenant_id)
        if is_active is not None:
            query = query.filter(Shop.is_active.is_(is_active))
        if search:
            term = f"%{search}%"
            query = query.filter(or_(Shop.name.ilike(term), Shop.code.ilike(term)))
        total = query.count()
        items = query.order_by(Shop.name).offset(offset).limit(limit).all()
        return ShopList(items=items, total=total, limit=limit, offset=offset)

    def get_shop(self, shop_id: UUID, tenant_id: UUID) -> Shop:
        shop = self.db.query(Shop).filter(Shop.id == shop_id, Shop.tenant_id == tenant_id).first()
        if not shop:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
        return shop

    def update_shop(self, shop_id: UUID, data: ShopUpdate, tenant_id: UUID) -> Shop:
        shop = self.get_shop(shop_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if "manager_id" in update_data:
            ensure_member(self.db, update_data["manager_id"], tenant_id, "Manager")
        if "metadata" in update_data:
            shop.metadata_ = {**(shop.metadata_ or {}), **(update_data.pop("metadata") or {})}
        for field, value in update_data.items():
            setattr(shop, field, value)
        self.db.commit()
        self.db.refresh(shop)
        return shop

    def delete_shop(self, shop_id: UUID, tenant_id: UUID) -> dict:
        shop = self.get_shop(shop_id, tenant_id)
        has_sales = self.db.query(Sale.id).filter(Sale.shop_id == shop.id).first()
        if has_sales:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Shop has sales; deactivate it instead"
            )
        self.db.query(Product).filter(Product.shop_id == shop.id).update(
            {Product.shop_id: None}, synchronize_session=False
        )
        self.db.delete(shop)
        self.db.commit()
        return {"message": "Shop deleted", "id": str(shop_id)}


class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def create_product(self, data: ProductCreate, tenant_id: UUID) -> Product:
        if data.shop_id:
            ShopService(self.db).get_shop(data.shop_id, tenant_id)
        if data.sku and self.db.query(Product.id).filter(
            Product.tenant_id == tenant_id, Product.sku == data.sku
        ).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"SKU {data.sku} already exists")

        product = Product(
            tenant_id=tenant_id,
            metadata_=data.metadata or {},
            **data.model_dump(exclude={"metadata"})
        )
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def get_products(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        shop_id: Optional[UUID] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        low_stock: Optional[bool] = None,
        is_active: Optional[bool] = None
    ) -> ProductList:
        query = self.db.query(Product).filter(Product.tenant_id == tenant_id)
        if shop_id:
            query = query.filter(Product.shop_id == shop_id)
        if category:
            query = query.filter(Product.category == category)
        if is_active is not None:
            query = query.filter(Product.is_active.is_(is_active))
        if low_stock:
            query = query.filter(Product.quantity_on_hand <= Product.reorder_level)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Product.name.ilike(term),
                Product.sku.ilike(term),
                Product.barcode.ilike(term)
            ))
        total = query.count()
        items = query.order_by(Product.name).offset(offset).limit(limit).all()
        return ProductList(items=items, total=total, limit=limit, offset=offset)

    def get_product(self, product_id: UUID, tenant_id: UUID) -> Product:
        product = self.db.query(Product).filter(
            Product.id == product_id,
            Product.tenant_id == tenant_id
        ).first()
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    def get_by_barcode(self, barcode: str, tenant_id: UUID) -> Product:
        product = self.db.query(Product).filter(
            Product.tenant_id == tenant_id,
            Product.barcode == barcode,
            Product.is_active.is_(True)
        ).first()
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
        return product

    def update_product(self, product_id: UUID, data: ProductUpdate, tenant_id: UUID) -> Product:
        product = self.get_product(product_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("shop_id"):
            ShopService(self.db).get_shop(update_data["shop_id"], tenant_id)
        if update_data.get("sku") and update_data["sku"] != product.sku:
            if self.db.query(Product.id).filter(
                Product.tenant_id == tenant_id, Product.sku == update_data["sku"]
            ).first():
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"SKU {update_data['sku']} already exists")
        if "metadata" in update_data:
            product.metadata_ = {**(product.metadata_ or {}), **(update_data.pop("metadata") or {})}
        for field, value in update_data.items():
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: UUID, tenant_id: UUID) -> dict:
        product = self.get_product(product_id, tenant_id)
        if self.db.query(SaleItem.id).filter(SaleItem.product_id == product.id).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product has sales; deactivate it instead"
            )
        self.db.delete(product)
        self.db.commit()
        return {"message": "Product deleted", "id": str(product_id)}

    # ===== VARIANTES =====

    def get_variants(self, product_id: UUID, tenant_id: UUID) -> List[ProductVariant]:
        return self.get_product(product_id, tenant_id).variants

    def get_variant(self, product_id: UUID, variant_id: UUID, tenant_id: UUID) -> ProductVariant:
        product = self.get_product(product_id, tenant_id)
        variant = self.db.query(ProductVariant).filter(
            ProductVariant.id == variant_id,
            ProductVariant.product_id == product.id
        ).first()
        if not variant:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product variant not found")
        return variant

    def _check_variant_sku(self, product_id: UUID, sku: Optional[str]):
        if sku and self.db.query(ProductVariant.id).filter(
            ProductVariant.product_id == product_id, ProductVariant.sku == sku
        ).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Variant SKU {sku} already exists")

    def create_variant(self, product_id: UUID, data: VariantCreate, tenant_id: UUID) -> ProductVariant:
        product = self.get_product(product_id, tenant_id)
        self._check_variant_sku(product.id, data.sku)
        variant = ProductVariant(
            product_id=product.id,
            metadata_=data.metadata or {},
            **data.model_dump(exclude={"metadata"})
        )
        self.db.add(variant)
        self.db.commit()
        self.db.refresh(variant)
        return variant

    def update_variant(self, product_id: UUID, variant_id: UUID, data: VariantUpdate, tenant_id: UUID) -> ProductVariant:
        variant = self.get_variant(product_id, variant_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("sku") and update_data["sku"] != variant.sku:
            self._check_variant_sku(variant.product_id, update_data["sku"])
        if "metadata" in update_data:
            variant.metadata_ = {**(variant.metadata_ or {}), **(update_data.pop("metadata") or {})}
        for field, value in update_data.items():
            if value is None and field in REQUIRED_VARIANT_FIELDS:
                continue
            setattr(variant, field, value)
        self.db.commit()
        self.db.refresh(variant)
        return variant

    def delete_variant(self, product_id: UUID, variant_id: UUID, tenant_id: UUID) -> dict:
        variant = self.get_variant(product_id, variant_id, tenant_id)
        self.db.delete(variant)
        self.db.commit()
        return {"message": "Product variant deleted", "id": str(variant_id)}


class SaleService:
    def __init__(self, db: Session):
        self.db = db

    def _alert_recipients(self, tenant_id: UUID) -> List[User]:
        return self.db.query(User).join(UserTenant, UserTenant.user_id == User.id).filter(
            UserTenant.tenant_id == tenant_id,
            UserTenant.status == MembershipStatus.ACTIVE,
            UserTenant.role.in_(MANAGER_ROLES),
            User.is_active.is_(True),
            User.phone.isnot(None)
        ).all()

    def create_sale(self, data: SaleCreate, tenant_id: UUID, user_id: UUID) -> Sale:
        if data.shop_id:
            ShopService(self.db).get_shop(data.shop_id, tenant_id)
        customer = None
        if data.customer_id:
            customer = self.db.query(Customer).filter(
                Customer.id == data.customer_id,
                Customer.tenant_id == tenant_id
            ).first()
            if not customer:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

        product_ids = {item.product_id for item in data.items}
        products = {
            p.id: p for p in self.db.query(Product).filter(
                Product.tenant_id == tenant_id,
                Product.id.in_(product_ids)
            ).all()
        }
        missing = product_ids - set(products)
        if missing:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        variant_ids = {item.product_variant_id for item in data.items if item.product_variant_id}
        variants = {
            v.id: v for v in self.db.query(ProductVariant).filter(
                ProductVariant.id.in_(variant_ids),
                ProductVariant.product_id.in_(product_ids),
                ProductVariant.is_active.is_(True)
            ).all()
        } if variant_ids else {}
        if variant_ids - set(variants):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product variant not found")

        sale_items = []
        low_stock = []
        subtotal = discount = tax = Decimal("0")

        for item in data.items:
            product = products[item.product_id]
            variant = variants.get(item.product_variant_id)
            if variant is not None and variant.product_id != product.id:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product variant not found")

            unit_price = item.unit_price
            if unit_price is None:
                unit_price = variant.selling_price if variant is not None and variant.selling_price is not None else product.selling_price
            unit_price = money(unit_price)
            line_subtotal = money(item.quantity * unit_price)
            line_discount = money(item.discount)
            line_tax = money(item.tax)

            sale_items.append(SaleItem(
                product_id=product.id,
                product_variant_id=variant.id if variant is not None else None,
                name=item.name or (f"{product.name} ({variant.name})" if variant is not None else product.name),
                sku=(variant.sku if variant is not None else None) or product.sku,
                quantity=item.quantity,
                unit_price=unit_price,
                discount=line_discount,
                tax=line_tax,
                subtotal=line_subtotal,
                total=money(line_subtotal - line_discount + line_tax)
            ))
            subtotal += line_subtotal
            discount += line_discount
            tax += line_tax

            remaining = money(product.quantity_on_hand) - money(item.quantity)
            product.quantity_on_hand = max(Decimal("0.00"), remaining)
            if variant is not None:
                variant.quantity_on_hand = max(Decimal("0.00"), money(variant.quantity_on_hand) - money(item.quantity))
            if product.quantity_on_hand <= money(product.reorder_level) and product not in low_stock:
                low_stock.append(product)

        discount = money(discount + data.discount)
        total = money(subtotal - discount + tax)
        amount_paid = money(data.amount_paid) if data.amount_paid is not None else total

        sale = Sale(
            tenant_id=tenant_id,
            sale_number=next_document_number(self.db, tenant_id, "SALE", period_format=DAILY),
            shop_id=data.shop_id,
            customer_id=data.customer_id,
            subtotal=money(subtotal),
            discount=discount,
            tax=money(tax),
            total=total,
            payment_method=data.payment_method,
            amount_paid=amount_paid,
            change=max(Decimal("0.00"), money(amount_paid - total)),
            status=SaleStatus.COMPLETED,
            sold_by=user_id,
            notes=data.notes,
            metadata_=data.metadata or {}
        )
        sale.items = sale_items
        self.db.add(sale)
        self.db.commit()
        self.db.refresh(sale)

        self._notify_sale(sale, customer, low_stock, tenant_id)
        return sale

    def _notify_sale(self, sale: Sale, customer: Optional[Customer], low_stock: List[Product], tenant_id: UUID):
        from app.modules.whatsapp.notifications import notify_template

        try:
            if low_stock:
                recipients = self._alert_recipients(tenant_id)
                for product in low_stock:
                    for user in recipients:
                        notify_template(self.db, tenant_id, user.phone, "low_stock_alert", [
                            product.name,
                            f"{money(product.quantity_on_hand)} {product.unit}",
                            f"{money(product.reorder_level)} {product.unit}",
                        ])
            if customer and customer.phone:
                notify_template(self.db, tenant_id, customer.phone, "order_confirmation", [
                    customer.name,
                    sale.sale_number,
                ])
        except Exception as e:
            logger.warning(f"WhatsApp notifications for sale {sale.sale_number} failed: {e}")

    def get_sales(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        shop_id: Optional[UUID] = None,
        status_filter: Optional[SaleStatus] = None,
        customer_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None
    ) -> SaleList:
        query = self.db.query(Sale).options(selectinload(Sale.items)).filter(Sale.tenant_id == tenant_id)
        if shop_id:
            query = query.filter(Sale.shop_id == shop_id)
        if status_filter:
            query = query.filter(Sale.status == status_filter)
        if customer_id:
            query = query.filter(Sale.customer_id == customer_id)
        if start_date:
            query = query.filter(Sale.created_at >= start_date)
        if end_date:
            query = query.filter(Sale.created_at < end_date + timedelta(days=1))
        if search:
            query = query.filter(Sale.sale_number.ilike(f"%{search}%"))
        total = query.count()
        items = query.order_by(Sale.created_at.desc()).offset(offset).limit(limit).all()
        return SaleList(items=items, total=total, limit=limit, offset=offset)

    def get_sale(self, sale_id: UUID, tenant_id: UUID) -> Sale:
        sale = self.db.query(Sale).options(selectinload(Sale.items)).filter(
            Sale.id == sale_id,
            Sale.tenant_id == tenant_id
        ).first()
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        return sale

    def update_sale(self, sale_id: UUID, data: SaleUpdate, tenant_id: UUID) -> Sale:
        sale = self.get_sale(sale_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if "metadata" in update_data:
            sale.metadata_ = {**(sale.metadata_ or {}), **(update_data.pop("metadata") or {})}
        for field, value in update_data.items():
            setattr(sale, field, value)
        self.db.commit()
        self.db.refresh(sale)
        return sale

    def cancel_sale(self, sale_id: UUID, tenant_id: UUID) -> Sale:
        """Cancela la venta y devuelve las cantidades al stock."""
        sale = self.get_sale(sale_id, tenant_id)
        if sale.status in (SaleStatus.CANCELLED, SaleStatus.REFUNDED):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sale is already cancelled or refunded")

        for item in sale.items:
            product = self.db.query(Product).filter(Product.id == item.product_id).first()
            if product:
                product.quantity_on_hand = money(product.quantity_on_hand) + money(item.quantity)
            if item.product_variant_id:
                variant = self.db.query(ProductVariant).filter(ProductVariant.id == item.product_variant_id).first()
                if variant:
                    variant.quantity_on_hand = money(variant.quantity_on_hand) + money(item.quantity)

        sale.status = SaleStatus.CANCELLED
        self.db.commit()
        self.db.refresh(sale)
        logger.info(f"Sale {sale.sale_number} cancelled, stock restored")
        return sale

    def generate_invoice(self, sale_id: UUID, tenant_id: UUID) -> Invoice:
        """
        Factura a partir de la venta. El impuesto de la venta va como línea
        propia y el descuento como descuento fijo, de modo que el total de la
        factura coincide con el de la venta.
        """
        sale = self.get_sale(sale_id, tenant_id)
        if sale.invoice_id or self.db.query(Invoice.id).filter(
            Invoice.tenant_id == tenant_id, Invoice.sale_id == sale.id
        ).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invoice already exists for this sale")

        items = [
            {
                "description": item.name,
                "category": "sale",
                "quantity": float(item.quantity),
                "unit_price": float(money(item.unit_price)),
                "total": float(money(item.subtotal)),
            }
            for item in sale.items
        ]
        if money(sale.tax) > 0:
            items.append({
                "description": "Tax",
                "category": "tax",
                "quantity": 1,
                "unit_price": float(money(sale.tax)),
                "total": float(money(sale.tax)),
            })

        fields = {}
        if money(sale.discount) > 0:
            fields = {
                "discount_type": DiscountType.FIXED,
                "discount_value": money(sale.discount),
                "discount_reason": "Sale discount",
            }

        invoice = InvoiceService(self.db).build_invoice(
            tenant_id,
            items,
            source_type=InvoiceSourceType.SALE,
            customer_id=sale.customer_id,
            sale_id=sale.id,
            amount_paid=min(money(sale.amount_paid), money(sale.total)),
            status=InvoiceStatus.SENT,
            notes=f"Invoice for sale {sale.sale_number}",
            **fields
        )
        sale.invoice_id = invoice.id
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"Invoice {invoice.invoice_number} generated for sale {sale.sale_number}")
        return invoice

    def get_receipt(self, sale_id: UUID, tenant_id: UUID) -> SaleReceipt:
        sale = self.get_sale(sale_id, tenant_id)
        seller = self.db.query(User).filter(User.id == sale.sold_by).first() if sale.sold_by else None
        shop = sale.shop
        return SaleReceipt(
            sale_number=sale.sale_number,
            date=sale.created_at,
            shop=ReceiptShop(name=shop.name, address=shop.address, phone=shop.phone, email=shop.email) if shop else None,
            customer_name=sale.customer.name if sale.customer else None,
            sold_by=seller.name if seller else None,
            items=[SaleItemOut.model_validate(item) for item in sale.items],
            subtotal=sale.subtotal,
            discount=sale.discount,
            tax=sale.tax,
            total=sale.total,
            payment_method=sale.payment_method,
            amount_paid=sale.amount_paid,
            change=sale.change,
            status=sale.status
        )
