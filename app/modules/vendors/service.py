from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.modules.vendors.models import Vendor, VendorPriceListItem
from app.modules.vendors.schemas import (
    VendorCreate, VendorUpdate, VendorList, PriceListItemCreate, PriceListItemUpdate
)
from app.common.validators import money


class VendorService:
    def __init__(self, db: Session):
        self.db = db

    def create_vendor(self, data: VendorCreate, tenant_id: UUID) -> Vendor:
        vendor = Vendor(tenant_id=tenant_id, balance=Decimal("0"), **data.model_dump())
        self.db.add(vendor)
        self.db.commit()
        self.db.refresh(vendor)
        return vendor

    def get_vendors(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        category: Optional[str] = None
    ) -> VendorList:
        query = self.db.query(Vendor).filter(Vendor.tenant_id == tenant_id)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Vendor.name.ilike(term),
                Vendor.company.ilike(term),
                Vendor.email.ilike(term)
            ))
        if is_active is not None:
            query = query.filter(Vendor.is_active == is_active)
        if category:
            query = query.filter(Vendor.category == category)

        total = query.count()
        items = query.order_by(Vendor.name).offset(offset).limit(limit).all()
        return VendorList(items=items, total=total, limit=limit, offset=offset)

    def get_vendor(self, vendor_id: UUID, tenant_id: UUID) -> Vendor:
        vendor = self.db.query(Vendor).filter(
            Vendor.id == vendor_id,
            Vendor.tenant_id == tenant_id
        ).first()
        if not vendor:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found")
        return vendor

    def update_vendor(self, vendor_id: UUID, data: VendorUpdate, tenant_id: UUID) -> Vendor:
        vendor = self.get_vendor(vendor_id, tenant_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(vendor, field, value)
        self.db.commit()
        self.db.refresh(vendor)
        return vendor

    def delete_vendor(self, vendor_id: UUID, tenant_id: UUID) -> dict:
        vendor = self.get_vendor(vendor_id, tenant_id)
        vendor.archive()
        self.db.commit()
        return {"message": "Vendor deactivated", "id": str(vendor.id)}

    def restore_vendor(self, vendor_id: UUID, tenant_id: UUID) -> Vendor:
        vendor = self.get_vendor(vendor_id, tenant_id)
        vendor.restore()
        self.db.commit()
        self.db.refresh(vendor)
        return vendor

    def adjust_balance(self, vendor_id: UUID, tenant_id: UUID, delta: Decimal) -> Vendor:
        vendor = self.get_vendor(vendor_id, tenant_id)
        vendor.balance = money((vendor.balance or 0) + delta)
        self.db.flush()
        return vendor

    # ===== LISTA DE PRECIOS =====

    def get_price_list(self, vendor_id: UUID, tenant_id: UUID, is_active: Optional[bool] = None) -> List[VendorPriceListItem]:
        vendor = self.get_vendor(vendor_id, tenant_id)
        query = self.db.query(VendorPriceListItem).filter(
            VendorPriceListItem.tenant_id == tenant_id,
            VendorPriceListItem.vendor_id == vendor.id
        )
        if is_active is not None:
            query = query.filter(VendorPriceListItem.is_active == is_active)
        return query.order_by(VendorPriceListItem.created_at.desc()).all()

    def get_price_list_item(self, vendor_id: UUID, item_id: UUID, tenant_id: UUID) -> VendorPriceListItem:
        item = self.db.query(VendorPriceListItem).filter(
            VendorPriceListItem.id == item_id,
            VendorPriceListItem.vendor_id == vendor_id,
            VendorPriceListItem.tenant_id == tenant_id
        ).first()
        if not item:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Price list item not found")
        return item

    def create_price_list_item(self, vendor_id: UUID, data: PriceListItemCreate, tenant_id: UUID) -> VendorPriceListItem:
        vendor = self.get_vendor(vendor_id, tenant_id)
        values = data.model_dump()
        values["price"] = money(values["price"])
        item = VendorPriceListItem(tenant_id=tenant_id, vendor_id=vendor.id, **values)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update_price_list_item(
        self, vendor_id: UUID, item_id: UUID, data: PriceListItemUpdate, tenant_id: UUID
    ) -> VendorPriceListItem:
        item = self.get_price_list_item(vendor_id, item_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("price") is not None:
            update_data["price"] = money(update_data["price"])
        for field, value in update_data.items():
            setattr(item, field, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_price_list_item(self, vendor_id: UUID, item_id: UUID, tenant_id: UUID) -> dict:
        item = self.get_price_list_item(vendor_id, item_id, tenant_id)
        self.db.delete(item)
        self.db.commit()
        return {"message": "Price list item deleted", "id": str(item_id)}
