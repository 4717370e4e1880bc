from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.quotes.service import QuoteService
from app.modules.quotes.models import QuoteStatus
from app.modules.quotes.schemas import QuoteCreate, QuoteUpdate, QuoteOut, QuoteList, QuoteConversionResult

quotes_router = APIRouter(prefix="/quotes", tags=["Quotes"])


@quotes_router.post("", response_model=QuoteOut, status_code=status.HTTP_201_CREATED)
def create_quote(
    data: QuoteCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return QuoteService(db).create_quote(data, auth_context.tenant_id, auth_context.user_id)


@quotes_router.get("", response_model=QuoteList)
def list_quotes(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[QuoteStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return QuoteService(db).get_quotes(auth_context.tenant_id, limit, offset, status_filter, customer_id, search)


@quotes_router.get("/{quote_id}", response_model=QuoteOut)
def get_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return QuoteService(db).get_quote(quote_id, auth_context.tenant_id)


@quotes_router.put("/{quote_id}", response_model=QuoteOut)
def update_quote(
    quote_id: UUID,
    data: QuoteUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """Actualizar cotización. Si se envían items, reemplazan a los existentes."""
    return QuoteService(db).update_quote(quote_id, data, auth_context.tenant_id)


@quotes_router.delete("/{quote_id}")
def delete_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return QuoteService(db).delete_quote(quote_id, auth_context.tenant_id)


@quotes_router.post("/{quote_id}/send", response_model=QuoteOut)
def send_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return QuoteService(db).send_quote(quote_id, auth_context.tenant_id)


@quotes_router.post("/{quote_id}/convert-to-job", response_model=QuoteConversionResult, status_code=status.HTTP_201_CREATED)
def convert_quote_to_job(
    quote_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return QuoteService(db).convert_to_job(quote_id, auth_context.tenant_id, auth_context.user_id)
