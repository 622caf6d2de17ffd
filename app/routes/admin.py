from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pymongo.collection import Collection
from sqlalchemy.orm import Session
from app.core.db import get_db
from app.core.auth import get_current_admin, require_super_admin
from app.core.mongo import get_submission_collection
from app.models.enums import SortField, SortOrder, SubmissionStatus
from app.controllers.file_controller import get_file_stage
from app.controllers.notification_controller import get_notifier
from app.controllers.submission_controller import (
    delete_submission,
    get_submission,
    query_submissions,
    transition_status,
)
from app.controllers.admin_controller import (
    create_admin_account,
    deactivate_admin_account,
    get_dashboard,
    get_stats,
    list_admins,
    update_admin_account,
)
from app.schemas.admin_schema import (
    AdminCreate,
    AdminRead,
    AdminUpdate,
    DashboardResponse,
    StatsResponse,
)
from app.schemas.submission_schema import StatusUpdate, SubmissionList, SubmissionRead

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard_route(
    db: Session = Depends(get_db),
    col: Collection = Depends(get_submission_collection),
    _admin=Depends(get_current_admin),
):
    return get_dashboard(db, col)


@router.get("/stats", response_model=StatsResponse)
def stats_route(
    db: Session = Depends(get_db),
    col: Collection = Depends(get_submission_collection),
    _admin=Depends(get_current_admin),
):
    return get_stats(db, col)


@router.get("/submissions", response_model=SubmissionList)
def list_submissions_route(
    status: SubmissionStatus | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    sort_by: SortField = Query(default=SortField.SUBMITTED_AT, alias="sortBy"),
    sort_order: SortOrder = Query(default=SortOrder.DESC, alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    col: Collection = Depends(get_submission_collection),
    _admin=Depends(get_current_admin),
):
    return query_submissions(
        col,
        status_filter=status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("/submissions/{record_id}", response_model=SubmissionRead)
def get_submission_route(
    record_id: str,
    col: Collection = Depends(get_submission_collection),
    _admin=Depends(get_current_admin),
):
    return get_submission(col, record_id)


@router.put("/submissions/{record_id}/status", response_model=SubmissionRead)
def update_submission_status_route(
    record_id: str,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    col: Collection = Depends(get_submission_collection),
    notifier=Depends(get_notifier),
    admin=Depends(get_current_admin),
):
    return transition_status(
        col,
        record_id,
        payload.status,
        admin.username,
        notifier,
        background_tasks,
        notes=payload.internal_notes,
    )


@router.delete("/submissions/{record_id}")
def delete_submission_route(
    record_id: str,
    col: Collection = Depends(get_submission_collection),
    file_stage=Depends(get_file_stage),
    admin=Depends(get_current_admin),
):
    return delete_submission(col, record_id, admin.role, file_stage)


@router.get("/admins", response_model=list[AdminRead])
def list_admins_route(
    db: Session = Depends(get_db),
    _admin=Depends(require_super_admin),
):
    return list_admins(db)


@router.post("/admins", response_model=AdminRead, status_code=201)
def create_admin_route(
    payload: AdminCreate,
    db: Session = Depends(get_db),
    _admin=Depends(require_super_admin),
):
    return create_admin_account(db, payload)


@router.put("/admins/{admin_id}", response_model=AdminRead)
def update_admin_route(
    admin_id: int,
    payload: AdminUpdate,
    db: Session = Depends(get_db),
    admin=Depends(require_super_admin),
):
    return update_admin_account(db, admin, admin_id, payload)


@router.delete("/admins/{admin_id}")
def deactivate_admin_route(
    admin_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_super_admin),
):
    return deactivate_admin_account(db, admin, admin_id)
