from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from datetime import date

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.shops.service import ShopService, ProductService, SaleService
from app.modules.shops.models import SaleStatus
from app.modules.shops.schemas import (
    ShopCreate, ShopUpdate, ShopOut, ShopList,
    ProductCreate, ProductUpdate, ProductOut, ProductList,
    VariantCreate, VariantUpdate, VariantOut,
    SaleCreate, SaleUpdate, SaleOut, SaleList, SaleReceipt
)
from app.modules.invoices.schemas import InvoiceOut

shops_router = APIRouter(prefix="/shops", tags=["Shops"])
products_router = APIRouter(prefix="/products", tags=["Products"])
sales_router = APIRouter(prefix="/sales", tags=["Sales"])


# ===== SHOPS =====

@shops_router.post("", response_model=ShopOut, status_code=status.HTTP_201_CREATED)
def create_shop(
    data: ShopCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ShopService(db).create_shop(data, auth_context.tenant_id)


@shops_router.get("", response_model=ShopList)
def list_shops(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ShopService(db).get_shops(auth_context.tenant_id, limit, offset, is_active, search)


@shops_router.get("/{shop_id}", response_model=ShopOut)
def get_shop(
    shop_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ShopService(db).get_shop(shop_id, auth_context.tenant_id)


@shops_router.put("/{shop_id}", response_model=ShopOut)
def update_shop(
    shop_id: UUID,
    data: ShopUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ShopService(db).update_shop(shop_id, data, auth_context.tenant_id)


@shops_router.delete("/{shop_id}")
def delete_shop(
    shop_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ShopService(db).delete_shop(shop_id, auth_context.tenant_id)


# ===== PRODUCTS =====

@products_router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ProductService(db).create_product(data, auth_context.tenant_id)


@products_router.get("", response_model=ProductList)
def list_products(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    shop_id: Optional[UUID] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    low_stock: Optional[bool] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ProductService(db).get_products(
        auth_context.tenant_id, limit, offset, shop_id, category, search, low_stock, is_active
    )


@products_router.get("/barcode/{barcode}", response_model=ProductOut)
def get_product_by_barcode(
    barcode: str,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Búsqueda por código de barras (lector del punto de venta)."""
    return ProductService(db).get_by_barcode(barcode, auth_context.tenant_id)


@products_router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ProductService(db).get_product(product_id, auth_context.tenant_id)


@products_router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ProductService(db).update_product(product_id, data, auth_context.tenant_id)


@products_router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ProductService(db).delete_product(product_id, auth_context.tenant_id)


@products_router.get("/{product_id}/variants", response_model=List[VariantOut])
def list_variants(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ProductService(db).get_variants(product_id, auth_context.tenant_id)


@products_router.post("/{product_id}/variants", response_model=VariantOut, status_code=status.HTTP_201_CREATED)
def create_variant(
    product_id: UUID,
    data: VariantCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ProductService(db).create_variant(product_id, data, auth_context.tenant_id)


@products_router.put("/{product_id}/variants/{variant_id}", response_model=VariantOut)
def update_variant(
    product_id: UUID,
    variant_id: UUID,
    data: VariantUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ProductService(db).update_variant(product_id, variant_id, data, auth_context.tenant_id)


@products_router.delete("/{product_id}/variants/{variant_id}")
def delete_variant(
    product_id: UUID,
    variant_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return ProductService(db).delete_variant(product_id, variant_id, auth_context.tenant_id)


# ===== SALES =====

@sales_router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(
    data: SaleCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """
    Registrar una venta (POS).

    Descuenta stock y encola alertas de stock bajo y confirmación al cliente por WhatsApp.
    """
    return SaleService(db).create_sale(data, auth_context.tenant_id, auth_context.user_id)


@sales_router.get("", response_model=SaleList)
def list_sales(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    shop_id: Optional[UUID] = None,
    status_filter: Optional[SaleStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return SaleService(db).get_sales(
        auth_context.tenant_id, limit, offset, shop_id, status_filter, customer_id, start_date, end_date, search
    )


@sales_router.get("/{sale_id}", response_model=SaleOut)
def get_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return SaleService(db).get_sale(sale_id, auth_context.tenant_id)


@sales_router.put("/{sale_id}", response_model=SaleOut)
def update_sale(
    sale_id: UUID,
    data: SaleUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return SaleService(db).update_sale(sale_id, data, auth_context.tenant_id)


@sales_router.post("/{sale_id}/cancel", response_model=SaleOut)
def cancel_sale(
    sale_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return SaleService(db).cancel_sale(sale_id, auth_context.tenant_id)


@sales_router.post("/{sale_id}/invoice", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def generate_sale_invoice(
    sale_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return SaleService(db).generate_invoice(sale_id, auth_context.tenant_id)


@sales_router.get("/{sale_id}/receipt", response_model=SaleReceipt)
def get_sale_receipt(
    sale_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return SaleService(db).get_receipt(sale_id, auth_context.tenant_id)
