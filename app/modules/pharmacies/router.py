from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.pharmacies.service import PharmacyService, DrugService, PrescriptionService
from app.modules.pharmacies.models import DrugType, PrescriptionStatus
from app.modules.pharmacies.schemas import (
    PharmacyCreate, PharmacyUpdate, PharmacyOut, PharmacyList,
    DrugCreate, DrugUpdate, DrugOut, DrugList,
    PrescriptionCreate, PrescriptionUpdate, PrescriptionOut, PrescriptionList
)
from app.modules.invoices.schemas import InvoiceOut

pharmacies_router = APIRouter(prefix="/pharmacies", tags=["Pharmacies"])
drugs_router = APIRouter(prefix="/drugs", tags=["Drugs"])
prescriptions_router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


# ===== PHARMACIES =====

@pharmacies_router.post("", response_model=PharmacyOut, status_code=status.HTTP_201_CREATED)
def create_pharmacy(
    data: PharmacyCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PharmacyService(db).create_pharmacy(data, auth_context.tenant_id)


@pharmacies_router.get("", response_model=PharmacyList)
def list_pharmacies(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PharmacyService(db).get_pharmacies(auth_context.tenant_id, limit, offset, is_active, search)


@pharmacies_router.get("/{pharmacy_id}", response_model=PharmacyOut)
def get_pharmacy(
    pharmacy_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PharmacyService(db).get_pharmacy(pharmacy_id, auth_context.tenant_id)


@pharmacies_router.put("/{pharmacy_id}", response_model=PharmacyOut)
def update_pharmacy(
    pharmacy_id: UUID,
    data: PharmacyUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PharmacyService(db).update_pharmacy(pharmacy_id, data, auth_context.tenant_id)


@pharmacies_router.delete("/{pharmacy_id}")
def delete_pharmacy(
    pharmacy_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return PharmacyService(db).delete_pharmacy(pharmacy_id, auth_context.tenant_id)


# ===== DRUGS =====

@drugs_router.post("", response_model=DrugOut, status_code=status.HTTP_201_CREATED)
def create_drug(
    data: DrugCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return DrugService(db).create_drug(data, auth_context.tenant_id)


@drugs_router.get("", response_model=DrugList)
def list_drugs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    pharmacy_id: Optional[UUID] = None,
    drug_type: Optional[DrugType] = None,
    search: Optional[str] = None,
    low_stock: Optional[bool] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return DrugService(db).get_drugs(
        auth_context.tenant_id, limit, offset, pharmacy_id, drug_type, search, low_stock, is_active
    )


@drugs_router.get("/expiring", response_model=List[DrugOut])
def list_expiring_drugs(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Medicamentos activos que vencen dentro de `days` días."""
    return DrugService(db).get_expiring(auth_context.tenant_id, days)


@drugs_router.get("/low-stock", response_model=List[DrugOut])
def list_low_stock_drugs(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return DrugService(db).get_low_stock(auth_context.tenant_id)


@drugs_router.get("/{drug_id}", response_model=DrugOut)
def get_drug(
    drug_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return DrugService(db).get_drug(drug_id, auth_context.tenant_id)


@drugs_router.put("/{drug_id}", response_model=DrugOut)
def update_drug(
    drug_id: UUID,
    data: DrugUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return DrugService(db).update_drug(drug_id, data, auth_context.tenant_id)


@drugs_router.delete("/{drug_id}")
def delete_drug(
    drug_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return DrugService(db).delete_drug(drug_id, auth_context.tenant_id)


# ===== PRESCRIPTIONS =====

@prescriptions_router.post("", response_model=PrescriptionOut, status_code=status.HTTP_201_CREATED)
def create_prescription(
    data: PrescriptionCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PrescriptionService(db).create_prescription(data, auth_context.tenant_id)


@prescriptions_router.get("", response_model=PrescriptionList)
def list_prescriptions(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[PrescriptionStatus] = Query(None, alias="status"),
    pharmacy_id: Optional[UUID] = None,
    customer_id: Optional[UUID] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PrescriptionService(db).get_prescriptions(
        auth_context.tenant_id, limit, offset, status_filter, pharmacy_id, customer_id, search
    )


@prescriptions_router.get("/{prescription_id}", response_model=PrescriptionOut)
def get_prescription(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PrescriptionService(db).get_prescription(prescription_id, auth_context.tenant_id)


@prescriptions_router.put("/{prescription_id}", response_model=PrescriptionOut)
def update_prescription(
    prescription_id: UUID,
    data: PrescriptionUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PrescriptionService(db).update_prescription(prescription_id, data, auth_context.tenant_id)


@prescriptions_router.post("/{prescription_id}/cancel", response_model=PrescriptionOut)
def cancel_prescription(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PrescriptionService(db).cancel_prescription(prescription_id, auth_context.tenant_id)


@prescriptions_router.post("/{prescription_id}/fill", response_model=PrescriptionOut)
def fill_prescription(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Despachar receta: verifica interacciones y descuenta stock."""
    return PrescriptionService(db).fill_prescription(prescription_id, auth_context.tenant_id, auth_context.user_id)


@prescriptions_router.post("/{prescription_id}/invoice", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def generate_prescription_invoice(
    prescription_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PrescriptionService(db).generate_invoice(prescription_id, auth_context.tenant_id)
