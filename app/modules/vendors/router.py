from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.vendors.service import VendorService
from app.modules.vendors.schemas import (
    VendorCreate, VendorUpdate, VendorOut, VendorList,
    PriceListItemCreate, PriceListItemUpdate, PriceListItemOut
)

vendors_router = APIRouter(prefix="/vendors", tags=["Vendors"])


@vendors_router.post("", response_model=VendorOut, status_code=status.HTTP_201_CREATED)
def create_vendor(
    data: VendorCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return VendorService(db).create_vendor(data, auth_context.tenant_id)


@vendors_router.get("", response_model=VendorList)
def list_vendors(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return VendorService(db).get_vendors(auth_context.tenant_id, limit, offset, search, is_active, category)


@vendors_router.get("/{vendor_id}", response_model=VendorOut)
def get_vendor(
    vendor_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return VendorService(db).get_vendor(vendor_id, auth_context.tenant_id)


@vendors_router.put("/{vendor_id}", response_model=VendorOut)
def update_vendor(
    vendor_id: UUID,
    data: VendorUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return VendorService(db).update_vendor(vendor_id, data, auth_context.tenant_id)


@vendors_router.delete("/{vendor_id}")
def delete_vendor(
    vendor_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return VendorService(db).delete_vendor(vendor_id, auth_context.tenant_id)


@vendors_router.post("/{vendor_id}/restore", response_model=VendorOut)
def restore_vendor(
    vendor_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return VendorService(db).restore_vendor(vendor_id, auth_context.tenant_id)


# ===== LISTA DE PRECIOS =====

@vendors_router.get("/{vendor_id}/price-list", response_model=List[PriceListItemOut])
def list_price_list(
    vendor_id: UUID,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return VendorService(db).get_price_list(vendor_id, auth_context.tenant_id, is_active)


@vendors_router.post("/{vendor_id}/price-list", response_model=PriceListItemOut, status_code=status.HTTP_201_CREATED)
def create_price_list_item(
    vendor_id: UUID,
    data: PriceListItemCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return VendorService(db).create_price_list_item(vendor_id, data, auth_context.tenant_id)


@vendors_router.put("/{vendor_id}/price-list/{item_id}", response_model=PriceListItemOut)
def update_price_list_item(
    vendor_id: UUID,
    item_id: UUID,
    data: PriceListItemUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return VendorService(db).update_price_list_item(vendor_id, item_id, data, auth_context.tenant_id)


@vendors_router.delete("/{vendor_id}/price-list/{item_id}")
def delete_price_list_item(
    vendor_id: UUID,
    item_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return VendorService(db).delete_price_list_item(vendor_id, item_id, auth_context.tenant_id)
