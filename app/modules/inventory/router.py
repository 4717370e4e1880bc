from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.inventory.service import InventoryService
from app.modules.inventory.schemas import (
    CategoryCreate, CategoryUpdate, CategoryOut, ItemCreate, ItemUpdate, ItemOut, ItemList,
    RestockRequest, AdjustRequest, UsageRequest, MovementResult, MovementOut, InventorySummary
)

inventory_router = APIRouter(prefix="/inventory", tags=["Inventory"])


@inventory_router.post("/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InventoryService(db).create_category(data, auth_context.tenant_id)


@inventory_router.get("/categories", response_model=List[CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InventoryService(db).get_categories(auth_context.tenant_id)


@inventory_router.put("/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: UUID,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InventoryService(db).update_category(category_id, data, auth_context.tenant_id)


@inventory_router.delete("/categories/{category_id}")
def delete_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InventoryService(db).delete_category(category_id, auth_context.tenant_id)


@inventory_router.get("/summary", response_model=InventorySummary)
def inventory_summary(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InventoryService(db).get_summary(auth_context.tenant_id)


@inventory_router.post("/items", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
def create_item(
    data: ItemCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InventoryService(db).create_item(data, auth_context.tenant_id, auth_context.user_id)


@inventory_router.get("/items", response_model=ItemList)
def list_items(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    category_id: Optional[UUID] = None,
    low_stock: Optional[bool] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InventoryService(db).get_items(
        auth_context.tenant_id, limit, offset, category_id, low_stock, search, include_inactive
    )


@inventory_router.get("/items/{item_id}", response_model=ItemOut)
def get_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InventoryService(db).get_item(item_id, auth_context.tenant_id)


@inventory_router.put("/items/{item_id}", response_model=ItemOut)
def update_item(
    item_id: UUID,
    data: ItemUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InventoryService(db).update_item(item_id, data, auth_context.tenant_id)


@inventory_router.delete("/items/{item_id}")
def deactivate_item(
    item_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return InventoryService(db).deactivate_item(item_id, auth_context.tenant_id)


@inventory_router.post("/items/{item_id}/restock", response_model=MovementResult)
def restock_item(
    item_id: UUID,
    data: RestockRequest,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InventoryService(db).restock(item_id, data, auth_context.tenant_id, auth_context.user_id)


@inventory_router.post("/items/{item_id}/adjust", response_model=MovementResult)
def adjust_item(
    item_id: UUID,
    data: AdjustRequest,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    """Ajuste manual: `quantity_delta` o `new_quantity` (conteo físico)."""
    return InventoryService(db).adjust(item_id, data, auth_context.tenant_id, auth_context.user_id)


@inventory_router.post("/items/{item_id}/usage", response_model=MovementResult)
def record_item_usage(
    item_id: UUID,
    data: UsageRequest,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InventoryService(db).record_usage(item_id, data, auth_context.tenant_id, auth_context.user_id)


@inventory_router.get("/items/{item_id}/movements", response_model=List[MovementOut])
def list_item_movements(
    item_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InventoryService(db).get_movements(item_id, auth_context.tenant_id, limit, offset)
