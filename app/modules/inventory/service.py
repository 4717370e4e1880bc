"""
Inventario de materiales.

Toda variación de `quantity_on_hand` pasa por `_apply_movement`, que registra
el movimiento con cantidades anterior y nueva y rechaza existencias negativas.
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from app.modules.inventory.models import InventoryCategory, InventoryItem, InventoryMovement, InventoryMovementType
from app.modules.inventory.schemas import (
    CategoryCreate, CategoryUpdate, ItemCreate, ItemUpdate, ItemList, RestockRequest,
    AdjustRequest, UsageRequest, MovementResult, ItemOut, MovementOut, InventorySummary, CategoryCount
)
from app.modules.jobs.models import Job
from app.modules.vendors.models import Vendor
from app.common.scoping import ensure_tenant_row
from app.common.validators import money


class InventoryService:
    def __init__(self, db: Session):
        self.db = db

    # ===== CATEGORÍAS =====

    def create_category(self, data: CategoryCreate, tenant_id: UUID) -> InventoryCategory:
        exists = self.db.query(InventoryCategory.id).filter(
            InventoryCategory.tenant_id == tenant_id,
            InventoryCategory.name == data.name
        ).first()
        if exists:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")
        category = InventoryCategory(tenant_id=tenant_id, **data.model_dump())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def get_categories(self, tenant_id: UUID) -> List[InventoryCategory]:
        return self.db.query(InventoryCategory).filter(
            InventoryCategory.tenant_id == tenant_id
        ).order_by(InventoryCategory.name).all()

    def get_category(self, category_id: UUID, tenant_id: UUID) -> InventoryCategory:
        category = self.db.query(InventoryCategory).filter(
            InventoryCategory.id == category_id,
            InventoryCategory.tenant_id == tenant_id
        ).first()
        if not category:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        return category

    def update_category(self, category_id: UUID, data: CategoryUpdate, tenant_id: UUID) -> InventoryCategory:
        category = self.get_category(category_id, tenant_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: UUID, tenant_id: UUID) -> dict:
        category = self.get_category(category_id, tenant_id)
        self.db.query(InventoryItem).filter(InventoryItem.category_id == category.id).update(
            {InventoryItem.category_id: None}, synchronize_session=False
        )
        self.db.delete(category)
        self.db.commit()
        return {"message": "Category deleted", "id": str(category_id)}

    # ===== ITEMS =====

    def create_item(self, data: ItemCreate, tenant_id: UUID, user_id: Optional[UUID] = None) -> InventoryItem:
        if data.category_id:
            self.get_category(data.category_id, tenant_id)
        ensure_tenant_row(self.db, Vendor, data.preferred_vendor_id, tenant_id, "Vendor")
        if data.sku and self.db.query(InventoryItem.id).filter(
            InventoryItem.tenant_id == tenant_id, InventoryItem.sku == data.sku
        ).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"SKU {data.sku} already exists")

        item = InventoryItem(
            tenant_id=tenant_id,
            **data.model_dump(exclude={"quantity_on_hand"}),
            quantity_on_hand=Decimal("0")
        )
        self.db.add(item)
        self.db.flush()

        if data.quantity_on_hand > 0:
            self._apply_movement(
                item, InventoryMovementType.PURCHASE, data.quantity_on_hand,
                reference="Opening stock", unit_cost=data.unit_cost, user_id=user_id
            )

        self.db.commit()
        self.db.refresh(item)
        return item

    def get_items(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        category_id: Optional[UUID] = None,
        low_stock: Optional[bool] = None,
        search: Optional[str] = None,
        include_inactive: bool = False
    ) -> ItemList:
        query = self.db.query(InventoryItem).filter(InventoryItem.tenant_id == tenant_id)
        if not include_inactive:
            query = query.filter(InventoryItem.is_active.is_(True))
        if category_id:
            query = query.filter(InventoryItem.category_id == category_id)
        if low_stock:
            query = query.filter(InventoryItem.quantity_on_hand <= InventoryItem.reorder_level)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(InventoryItem.name.ilike(term), InventoryItem.sku.ilike(term)))

        total = query.count()
        items = query.order_by(InventoryItem.name).offset(offset).limit(limit).all()
        return ItemList(items=items, total=total, limit=limit, offset=offset)

    def get_item(self, item_id: UUID, tenant_id: UUID) -> InventoryItem:
        item = self.db.query(InventoryItem).filter(
            InventoryItem.id == item_id,
            InventoryItem.tenant_id == tenant_id
        ).first()
        if not item:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Inventory item not found")
        return item

    def update_item(self, item_id: UUID, data: ItemUpdate, tenant_id: UUID) -> InventoryItem:
        item = self.get_item(item_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("category_id"):
            self.get_category(update_data["category_id"], tenant_id)
        if "preferred_vendor_id" in update_data:
            ensure_tenant_row(self.db, Vendor, update_data["preferred_vendor_id"], tenant_id, "Vendor")
        for field, value in update_data.items():
            setattr(item, field, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def deactivate_item(self, item_id: UUID, tenant_id: UUID) -> dict:
        item = self.get_item(item_id, tenant_id)
        item.is_active = False
        self.db.commit()
        return {"message": "Inventory item deactivated", "id": str(item_id)}

    # ===== MOVIMIENTOS =====

    def _apply_movement(
        self,
        item: InventoryItem,
        movement_type: InventoryMovementType,
        delta: Decimal,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        unit_cost: Optional[Decimal] = None,
        job_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None
    ) -> InventoryMovement:
        previous = money(item.quantity_on_hand)
        new_quantity = money(previous + money(delta))
        if new_quantity < 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Resulting quantity cannot be negative")

        item.quantity_on_hand = new_quantity
        movement = InventoryMovement(
            tenant_id=item.tenant_id,
            item_id=item.id,
            type=movement_type,
            quantity_delta=money(delta),
            previous_quantity=previous,
            new_quantity=new_quantity,
            unit_cost=money(unit_cost) if unit_cost is not None else None,
            reference=reference,
            notes=notes,
            job_id=job_id,
            created_by=user_id
        )
        self.db.add(movement)
        self.db.flush()
        return movement

    def _result(self, item: InventoryItem, movement: InventoryMovement) -> MovementResult:
        self.db.commit()
        self.db.refresh(item)
        self.db.refresh(movement)
        return MovementResult(item=ItemOut.model_validate(item), movement=MovementOut.model_validate(movement))

    def restock(self, item_id: UUID, data: RestockRequest, tenant_id: UUID, user_id: UUID) -> MovementResult:
        item = self.get_item(item_id, tenant_id)
        if data.unit_cost is not None:
            item.unit_cost = money(data.unit_cost)
        movement = self._apply_movement(
            item, InventoryMovementType.PURCHASE, data.quantity,
            reference=data.reference, notes=data.notes,
            unit_cost=data.unit_cost if data.unit_cost is not None else item.unit_cost,
            user_id=user_id
        )
        return self._result(item, movement)

    def adjust(self, item_id: UUID, data: AdjustRequest, tenant_id: UUID, user_id: UUID) -> MovementResult:
        item = self.get_item(item_id, tenant_id)
        if data.new_quantity is not None:
            delta = money(data.new_quantity) - money(item.quantity_on_hand)
        else:
            delta = money(data.quantity_delta)
        if delta == 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Adjustment does not change the quantity")

        movement = self._apply_movement(
            item, InventoryMovementType.ADJUSTMENT, delta,
            reference=data.reference, notes=data.notes, user_id=user_id
        )
        return self._result(item, movement)

    def record_usage(self, item_id: UUID, data: UsageRequest, tenant_id: UUID, user_id: UUID) -> MovementResult:
        item = self.get_item(item_id, tenant_id)
        job = self.db.query(Job).filter(Job.id == data.job_id, Job.tenant_id == tenant_id).first()
        if not job:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

        movement = self._apply_movement(
            item, InventoryMovementType.USAGE, -data.quantity,
            reference=job.job_number, notes=data.notes, unit_cost=item.unit_cost,
            job_id=job.id, user_id=user_id
        )
        return self._result(item, movement)

    def get_movements(self, item_id: UUID, tenant_id: UUID, limit: int = 100, offset: int = 0) -> List[InventoryMovement]:
        item = self.get_item(item_id, tenant_id)
        return self.db.query(InventoryMovement).filter(
            InventoryMovement.item_id == item.id
        ).order_by(InventoryMovement.occurred_at.desc()).offset(offset).limit(limit).all()

    def get_summary(self, tenant_id: UUID) -> InventorySummary:
        active = (InventoryItem.tenant_id == tenant_id, InventoryItem.is_active.is_(True))

        total_items, total_quantity, inventory_value = self.db.query(
            func.count(InventoryItem.id),
            func.coalesce(func.sum(InventoryItem.quantity_on_hand), 0),
            func.coalesce(func.sum(InventoryItem.quantity_on_hand * InventoryItem.unit_cost), 0)
        ).filter(*active).one()

        low_stock_count = self.db.query(func.count(InventoryItem.id)).filter(
            *active,
            InventoryItem.quantity_on_hand <= InventoryItem.reorder_level
        ).scalar()

        rows = self.db.query(
            InventoryItem.category_id,
            InventoryCategory.name,
            func.count(InventoryItem.id)
        ).outerjoin(InventoryCategory, InventoryItem.category_id == InventoryCategory.id).filter(
            *active
        ).group_by(InventoryItem.category_id, InventoryCategory.name).all()

        return InventorySummary(
            total_items=total_items,
            total_quantity=money(total_quantity),
            inventory_value=money(inventory_value),
            low_stock_count=low_stock_count or 0,
            by_category=[CategoryCount(category_id=r[0], category_name=r[1], item_count=r[2]) for r in rows]
        )
