"""
Farmacias, medicamentos y recetas.

Al despachar una receta se verifica primero que ningún par de medicamentos
tenga interacción registrada; luego cada item se despacha total o parcialmente
según el stock disponible.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from itertools import combinations
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.modules.pharmacies.models import (
    Pharmacy, Drug, Prescription, PrescriptionItem, PrescriptionStatus, PrescriptionItemStatus
)
from app.modules.pharmacies.schemas import (
    PharmacyCreate, PharmacyUpdate, PharmacyList, DrugCreate, DrugUpdate, DrugList,
    PrescriptionCreate, PrescriptionUpdate, PrescriptionList
)
from app.modules.customers.models import Customer
from app.modules.invoices.models import Invoice, InvoiceStatus, InvoiceSourceType
from app.modules.invoices.service import InvoiceService, items_subtotal
from app.common.sequences import next_document_number, DAILY
from app.common.validators import money

logger = logging.getLogger(__name__)


def _normalize_name(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def find_interactions(drugs: List[Drug]) -> List[dict]:
    """Pares de medicamentos donde uno lista el nombre genérico del otro."""
    found = []
    for first, second in combinations(drugs, 2):
        first_lists = {_normalize_name(n) for n in (first.interactions or [])}
        second_lists = {_normalize_name(n) for n in (second.interactions or [])}
        if (second.generic_name and _normalize_name(second.generic_name) in first_lists) or \
                (first.generic_name and _normalize_name(first.generic_name) in second_lists):
            found.append({"drug": first.name, "interacts_with": second.name})
    return found


class PharmacyService:
    def __init__(self, db: Session):
        self.db = db

    def create_pharmacy(self, data: PharmacyCreate, tenant_id: UUID) -> Pharmacy:
        if data.code and self.db.query(Pharmacy.id).filter(
            Pharmacy.tenant_id == tenant_id, Pharmacy.code == data.code
        ).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Pharmacy code {data.code} already exists")

        pharmacy = Pharmacy(tenant_id=tenant_id, metadata_=data.metadata or {}, **data.model_dump(exclude={"metadata"}))
        self.db.add(pharmacy)
        self.db.commit()
        self.db.refresh(pharmacy)
        return pharmacy

    def get_pharmacies(self, tenant_id: UUID, limit: int = 100, offset: int = 0,
                       is_active: Optional[bool] = None, search: Optional[str] = None) -> PharmacyList:
        query = self.db.query(Pharmacy).filter(Pharmacy.tenant_id == tenant_id)
        if is_active is not None:
            query = query.filter(Pharmacy.is_active.is_(is_active))
        if search:
            term = f"%{search}%"
            query = query.filter(or_(Pharmacy.name.ilike(term), Pharmacy.code.ilike(term)))
        total = query.count()
        items = query.order_by(Pharmacy.name).offset(offset).limit(limit).all()
        return PharmacyList(items=items, total=total, limit=limit, offset=offset)

    def get_pharmacy(self, pharmacy_id: UUID, tenant_id: UUID) -> Pharmacy:
        pharmacy = self.db.query(Pharmacy).filter(
            Pharmacy.id == pharmacy_id,
            Pharmacy.tenant_id == tenant_id
        ).first()
        if not pharmacy:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pharmacy not found")
        return pharmacy

    def update_pharmacy(self, pharmacy_id: UUID, data: PharmacyUpdate, tenant_id: UUID) -> Pharmacy:
        pharmacy = self.get_pharmacy(pharmacy_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if "metadata" in update_data:
            pharmacy.metadata_ = {**(pharmacy.metadata_ or {}), **(update_data.pop("metadata") or {})}
        for field, value in update_data.items():
            setattr(pharmacy, field, value)
        self.db.commit()
        self.db.refresh(pharmacy)
        return pharmacy

    def delete_pharmacy(self, pharmacy_id: UUID, tenant_id: UUID) -> dict:
        pharmacy = self.get_pharmacy(pharmacy_id, tenant_id)
        if self.db.query(Prescription.id).filter(Prescription.pharmacy_id == pharmacy.id).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Pharmacy has prescriptions; deactivate it instead"
            )
        self.db.query(Drug).filter(Drug.pharmacy_id == pharmacy.id).update(
            {Drug.pharmacy_id: None}, synchronize_session=False
        )
        self.db.delete(pharmacy)
        self.db.commit()
        return {"message": "Pharmacy deleted", "id": str(pharmacy_id)}


class DrugService:
    def __init__(self, db: Session):
        self.db = db

    def create_drug(self, data: DrugCreate, tenant_id: UUID) -> Drug:
        if data.pharmacy_id:
            PharmacyService(self.db).get_pharmacy(data.pharmacy_id, tenant_id)
        if data.sku and self.db.query(Drug.id).filter(Drug.tenant_id == tenant_id, Drug.sku == data.sku).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"SKU {data.sku} already exists")

        drug = Drug(tenant_id=tenant_id, **data.model_dump())
        self.db.add(drug)
        self.db.commit()
        self.db.refresh(drug)
        return drug

    def get_drugs(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        pharmacy_id: Optional[UUID] = None,
        drug_type=None,
        search: Optional[str] = None,
        low_stock: Optional[bool] = None,
        is_active: Optional[bool] = None
    ) -> DrugList:
        query = self.db.query(Drug).filter(Drug.tenant_id == tenant_id)
        if pharmacy_id:
            query = query.filter(Drug.pharmacy_id == pharmacy_id)
        if drug_type:
            query = query.filter(Drug.drug_type == drug_type)
        if is_active is not None:
            query = query.filter(Drug.is_active.is_(is_active))
        if low_stock:
            query = query.filter(Drug.quantity_on_hand <= Drug.reorder_level)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Drug.name.ilike(term),
                Drug.generic_name.ilike(term),
                Drug.sku.ilike(term),
                Drug.barcode.ilike(term)
            ))
        total = query.count()
        items = query.order_by(Drug.name).offset(offset).limit(limit).all()
        return DrugList(items=items, total=total, limit=limit, offset=offset)

    def get_expiring(self, tenant_id: UUID, days: int = 30) -> List[Drug]:
        today = date.today()
        return self.db.query(Drug).filter(
            Drug.tenant_id == tenant_id,
            Drug.is_active.is_(True),
            Drug.expiry_date.isnot(None),
            Drug.expiry_date >= today,
            Drug.expiry_date <= today + timedelta(days=days)
        ).order_by(Drug.expiry_date).all()

    def get_low_stock(self, tenant_id: UUID) -> List[Drug]:
        return self.db.query(Drug).filter(
            Drug.tenant_id == tenant_id,
            Drug.is_active.is_(True),
            Drug.quantity_on_hand <= Drug.reorder_level
        ).order_by(Drug.quantity_on_hand).all()

    def get_drug(self, drug_id: UUID, tenant_id: UUID) -> Drug:
        drug = self.db.query(Drug).filter(Drug.id == drug_id, Drug.tenant_id == tenant_id).first()
        if not drug:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Drug not found")
        return drug

    def update_drug(self, drug_id: UUID, data: DrugUpdate, tenant_id: UUID) -> Drug:
        drug = self.get_drug(drug_id, tenant_id)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("pharmacy_id"):
            PharmacyService(self.db).get_pharmacy(update_data["pharmacy_id"], tenant_id)
        for field, value in update_data.items():
            setattr(drug, field, value)
        self.db.commit()
        self.db.refresh(drug)
        return drug

    def delete_drug(self, drug_id: UUID, tenant_id: UUID) -> dict:
        drug = self.get_drug(drug_id, tenant_id)
        if self.db.query(PrescriptionItem.id).filter(PrescriptionItem.drug_id == drug.id).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Drug is referenced by prescriptions; deactivate it instead"
            )
        self.db.delete(drug)
        self.db.commit()
        return {"message": "Drug deleted", "id": str(drug_id)}


class PrescriptionService:
    def __init__(self, db: Session):
        self.db = db

    def _check_customer(self, customer_id: Optional[UUID], tenant_id: UUID):
        if customer_id and not self.db.query(Customer.id).filter(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id
        ).first():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    def create_prescription(self, data: PrescriptionCreate, tenant_id: UUID) -> Prescription:
        if data.pharmacy_id:
            PharmacyService(self.db).get_pharmacy(data.pharmacy_id, tenant_id)
        self._check_customer(data.customer_id, tenant_id)

        drug_service = DrugService(self.db)
        items = []
        total = Decimal("0")
        for item in data.items:
            drug = drug_service.get_drug(item.drug_id, tenant_id)
            unit_price = money(item.unit_price if item.unit_price is not None else drug.selling_price)
            line_total = money(item.quantity * unit_price)
            items.append(PrescriptionItem(
                drug_id=drug.id,
                drug_name=drug.name,
                strength=drug.strength,
                form=drug.form,
                quantity=item.quantity,
                quantity_filled=Decimal("0"),
                unit=drug.unit,
                dosage=item.dosage,
                duration=item.duration,
                instructions=item.instructions,
                unit_price=unit_price,
                total_price=line_total,
                status=PrescriptionItemStatus.PENDING
            ))
            total += line_total

        prescription = Prescription(
            tenant_id=tenant_id,
            prescription_number=next_document_number(self.db, tenant_id, "RX", period_format=DAILY),
            status=PrescriptionStatus.PENDING,
            total_amount=money(total),
            prescription_date=data.prescription_date or date.today(),
            **data.model_dump(exclude={"items", "prescription_date"})
        )
        prescription.items = items
        self.db.add(prescription)
        self.db.commit()
        self.db.refresh(prescription)
        return prescription

    def get_prescriptions(
        self,
        tenant_id: UUID,
        limit: int = 100,
        offset: int = 0,
        status_filter: Optional[PrescriptionStatus] = None,
        pharmacy_id: Optional[UUID] = None,
        customer_id: Optional[UUID] = None,
        search: Optional[str] = None
    ) -> PrescriptionList:
        query = self.db.query(Prescription).options(selectinload(Prescription.items)).filter(
            Prescription.tenant_id == tenant_id
        )
        if status_filter:
            query = query.filter(Prescription.status == status_filter)
        if pharmacy_id:
            query = query.filter(Prescription.pharmacy_id == pharmacy_id)
        if customer_id:
            query = query.filter(Prescription.customer_id == customer_id)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Prescription.prescription_number.ilike(term),
                Prescription.prescriber_name.ilike(term)
            ))
        total = query.count()
        items = query.order_by(Prescription.created_at.desc()).offset(offset).limit(limit).all()
        return PrescriptionList(items=items, total=total, limit=limit, offset=offset)

    def get_prescription(self, prescription_id: UUID, tenant_id: UUID) -> Prescription:
        prescription = self.db.query(Prescription).options(selectinload(Prescription.items)).filter(
            Prescription.id == prescription_id,
            Prescription.tenant_id == tenant_id
        ).first()
        if not prescription:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prescription not found")
        return prescription

    def update_prescription(self, prescription_id: UUID, data: PrescriptionUpdate, tenant_id: UUID) -> Prescription:
        prescription = self.get_prescription(prescription_id, tenant_id)
        if prescription.status != PrescriptionStatus.PENDING or prescription.filled_at:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only pending prescriptions can be updated"
            )
        update_data = data.model_dump(exclude_unset=True)
        if "customer_id" in update_data:
            self._check_customer(update_data["customer_id"], tenant_id)
        for field, value in update_data.items():
            setattr(prescription, field, value)
        self.db.commit()
        self.db.refresh(prescription)
        return prescription

    def cancel_prescription(self, prescription_id: UUID, tenant_id: UUID) -> Prescription:
        prescription = self.get_prescription(prescription_id, tenant_id)
        if prescription.status in (PrescriptionStatus.FILLED, PrescriptionStatus.CANCELLED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot cancel a {prescription.status.value} prescription"
            )
        prescription.status = PrescriptionStatus.CANCELLED
        for item in prescription.items:
            if item.status in (PrescriptionItemStatus.PENDING, PrescriptionItemStatus.UNAVAILABLE):
                item.status = PrescriptionItemStatus.CANCELLED
        self.db.commit()
        self.db.refresh(prescription)
        return prescription

    def fill_prescription(self, prescription_id: UUID, tenant_id: UUID, user_id: UUID) -> Prescription:
        """
        Despacha la receta contra el stock.

        - stock suficiente: item `filled`
        - stock parcial: item `partially_filled` y el stock queda en 0
        - sin stock: item `unavailable`
        """
        prescription = self.get_prescription(prescription_id, tenant_id)
        if prescription.status in (PrescriptionStatus.FILLED, PrescriptionStatus.CANCELLED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Prescription is already filled or cancelled"
            )

        active_items = [i for i in prescription.items if i.status != PrescriptionItemStatus.CANCELLED]
        drugs = {
            d.id: d for d in self.db.query(Drug).filter(
                Drug.tenant_id == tenant_id,
                Drug.id.in_([i.drug_id for i in active_items])
            ).all()
        }

        interactions = find_interactions(list(drugs.values()))
        if interactions:
            pairs = ", ".join(f"{i['drug']} / {i['interacts_with']}" for i in interactions)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Drug interactions detected: {pairs}"
            )

        for item in active_items:
            if item.status == PrescriptionItemStatus.FILLED:
                continue
            drug = drugs.get(item.drug_id)
            needed = money(item.quantity) - money(item.quantity_filled)
            available = money(drug.quantity_on_hand) if drug else Decimal("0.00")

            if available >= needed:
                drug.quantity_on_hand = available - needed
                item.quantity_filled = money(item.quantity)
                item.status = PrescriptionItemStatus.FILLED
            elif available > 0:
                drug.quantity_on_hand = Decimal("0.00")
                item.quantity_filled = money(item.quantity_filled) + available
                item.status = PrescriptionItemStatus.PARTIALLY_FILLED
            elif money(item.quantity_filled) == 0:
                item.status = PrescriptionItemStatus.UNAVAILABLE
            item.total_price = money(money(item.quantity_filled) * money(item.unit_price))

        statuses = [i.status for i in active_items]
        if PrescriptionItemStatus.PARTIALLY_FILLED in statuses:
            prescription.status = PrescriptionStatus.PARTIALLY_FILLED
        elif statuses and all(s == PrescriptionItemStatus.FILLED for s in statuses):
            prescription.status = PrescriptionStatus.FILLED
        else:
            prescription.status = PrescriptionStatus.PENDING

        prescription.total_amount = money(sum((money(i.total_price) for i in active_items), Decimal("0")))
        prescription.filled_by = user_id
        prescription.filled_at = datetime.now(timezone.utc)

        self.db.commit()
        self.db.refresh(prescription)
        logger.info(f"Prescription {prescription.prescription_number} -> {prescription.status.value}")
        return prescription

    def generate_invoice(self, prescription_id: UUID, tenant_id: UUID) -> Invoice:
        prescription = self.get_prescription(prescription_id, tenant_id)
        if prescription.invoice_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invoice already exists for this prescription"
            )
        if prescription.status == PrescriptionStatus.CANCELLED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot invoice a cancelled prescription"
            )

        filled = prescription.filled_at is not None
        items = []
        for item in prescription.items:
            if item.status == PrescriptionItemStatus.CANCELLED:
                continue
            quantity = money(item.quantity_filled) if filled else money(item.quantity)
            if quantity <= 0:
                continue
            items.append({
                "description": f"{item.drug_name} {item.strength or ''}".strip(),
                "category": "prescription",
                "quantity": float(quantity),
                "unit_price": float(money(item.unit_price)),
                "total": float(money(quantity * money(item.unit_price))),
            })
        if not items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Prescription has nothing to invoice")

        invoice = InvoiceService(self.db).build_invoice(
            tenant_id,
            items,
            source_type=InvoiceSourceType.PRESCRIPTION,
            customer_id=prescription.customer_id,
            amount_paid=min(money(prescription.amount_paid), items_subtotal(items)),
            status=InvoiceStatus.SENT,
            notes=f"Invoice for prescription {prescription.prescription_number}"
        )
        prescription.invoice_id = invoice.id
        self.db.commit()
        self.db.refresh(invoice)
        return invoice
