from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies, ALL_ROLES, MANAGER_ROLES
from app.modules.jobs.service import JobService
from app.modules.jobs.models import JobStatus, JobPriority
from app.modules.jobs.schemas import JobCreate, JobUpdate, JobOut, JobDetail, JobList, JobStats, AttachmentOut

jobs_router = APIRouter(prefix="/jobs", tags=["Jobs"])


@jobs_router.post("", response_model=JobDetail, status_code=status.HTTP_201_CREATED)
def create_job(
    data: JobCreate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    """
    Crear trabajo.

    - **items**: se calcula total_price de cada uno; final_price por defecto es la suma
    - Se genera automáticamente la factura (Net 30)
    """
    return JobService(db).create_job(data, auth_context.tenant_id, auth_context.user_id)


@jobs_router.get("", response_model=JobList)
def list_jobs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    priority: Optional[JobPriority] = None,
    customer_id: Optional[UUID] = None,
    assigned_to: Optional[UUID] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return JobService(db).get_jobs(
        auth_context.tenant_id, limit, offset, status_filter, priority, customer_id, assigned_to, search
    )


@jobs_router.get("/stats", response_model=JobStats)
def job_stats(
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return JobService(db).get_stats(auth_context.tenant_id)


@jobs_router.get("/{job_id}", response_model=JobDetail)
def get_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return JobService(db).get_job(job_id, auth_context.tenant_id)


@jobs_router.put("/{job_id}", response_model=JobDetail)
def update_job(
    job_id: UUID,
    data: JobUpdate,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return JobService(db).update_job(job_id, data, auth_context.tenant_id, auth_context.user_id)


@jobs_router.delete("/{job_id}")
def delete_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(MANAGER_ROLES))
):
    return JobService(db).delete_job(job_id, auth_context.tenant_id)


@jobs_router.post("/{job_id}/attachments", response_model=AttachmentOut, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    job_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return await JobService(db).add_attachment(job_id, file, auth_context.tenant_id, auth_context.user_id)


@jobs_router.delete("/{job_id}/attachments/{attachment_id}")
def delete_attachment(
    job_id: UUID,
    attachment_id: str,
    db: Session = Depends(get_db),
    auth_context=Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return JobService(db).remove_attachment(job_id, attachment_id, auth_context.tenant_id)
