import logging
import math
import secrets
import string
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, time as dt_time, timezone
from fastapi import BackgroundTasks, HTTPException, status
from pydantic import ValidationError
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from app.controllers.file_controller import IncomingDocument, validate_documents
from app.models.enums import AdminRole, DocumentSlot, SortField, SortOrder, SubmissionStatus
from app.repositories.submission_repo import (
    count_by_status,
    delete_submission as delete_submission_record,
    get_submission_by_id,
    get_submission_by_submission_id,
    insert_submission,
    list_submissions,
    push_status_change,
    submission_id_exists,
)
from app.schemas.submission_schema import INITIAL_HISTORY_NOTE, SubmissionCreate

logger = logging.getLogger("license.submissions")

_ID_ALPHABET = string.ascii_uppercase + string.digits
_BASE36 = string.digits + string.ascii_uppercase
MAX_ID_ATTEMPTS = 5
HISTORY_NOTES_MAX = 500


def _base36(number: int) -> str:
    out = ""
    while number:
        number, rem = divmod(number, 36)
        out = _BASE36[rem] + out
    return out or "0"


def generate_submission_id() -> str:
    stamp = _base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(4))
    return f"LL{stamp}{suffix}"


def _allocate_submission_id(col: Collection) -> str:
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = generate_submission_id()
        if not submission_id_exists(col, candidate):
            return candidate
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Could not allocate a submission ID")


def _validation_error(message: str, errors: list[dict]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": message, "errors": errors},
    )


def _field_errors(exc: ValidationError) -> list[dict]:
    errors = []
    for err in exc.errors():
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field = ".".join(str(part) for part in err["loc"]) or "body"
        errors.append({"field": field, "message": message})
    return errors


def _drop_missing(raw: dict) -> dict:
    out = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            value = _drop_missing(value)
        if value is not None and value != "":
            out[key] = value
    return out


def parse_submission(raw: dict) -> SubmissionCreate:
    try:
        return SubmissionCreate.model_validate(_drop_missing(raw))
    except ValidationError as exc:
        raise _validation_error("Validation error", _field_errors(exc))


def _store_documents(file_stage, submission_id: str, files: dict[DocumentSlot, IncomingDocument]) -> dict:
    with ThreadPoolExecutor(max_workers=len(DocumentSlot)) as pool:
        futures = {
            slot: pool.submit(
                file_stage.store,
                files[slot].data,
                files[slot].mime_type,
                slot,
                submission_id,
                files[slot].filename,
            )
            for slot in DocumentSlot
        }
        stored: dict = {}
        failed: list[str] = []
        for slot, future in futures.items():
            try:
                stored[slot.value] = future.result()
            except Exception:
                logger.exception("document upload failed submission_id=%s slot=%s", submission_id, slot.value)
                failed.append(slot.value)

    if failed:
        for ref in stored.values():
            file_stage.delete(ref["storage_key"])
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to store documents")
    return stored


def _notify(send, *args) -> None:
    # the NotificationResult is not inspected here
    try:
        send(*args)
    except Exception:
        logger.exception("notification dispatch raised")


def _dispatch(background_tasks: BackgroundTasks, *calls) -> None:
    for send, *args in calls:
        background_tasks.add_task(_notify, send, *args)


def _cleanup_documents(file_stage, documents: dict) -> None:
    for ref in documents.values():
        file_stage.delete(ref["storage_key"])


def create_submission(
    col: Collection,
    data: SubmissionCreate,
    files: dict[DocumentSlot, IncomingDocument | None],
    file_stage,
    notifier,
    max_document_bytes: int,
    background_tasks: BackgroundTasks,
) -> dict:
    file_errors = validate_documents(files, max_document_bytes)
    if file_errors:
        raise _validation_error("File validation error", file_errors)

    submission_id = _allocate_submission_id(col)
    documents = _store_documents(file_stage, submission_id, files)

    now = datetime.now(timezone.utc)
    doc = {
        "submission_id": submission_id,
        "full_name": data.full_name,
        "phone_number": data.phone_number,
        "email": data.email,
        "date_of_birth": datetime.combine(data.date_of_birth, dt_time.min, tzinfo=timezone.utc),
        "address": data.address.model_dump(),
        "documents": documents,
        "status": SubmissionStatus.PENDING.value,
        "submitted_at": now,
        "reviewed_at": None,
        "reviewed_by": None,
        "internal_notes": None,
        "status_history": [
            {
                "status": SubmissionStatus.PENDING.value,
                "changed_at": now,
                "changed_by": None,
                "notes": INITIAL_HISTORY_NOTE,
            }
        ],
        "created_at": now,
        "updated_at": now,
    }

    try:
        for attempt in range(MAX_ID_ATTEMPTS):
            try:
                submission = insert_submission(col, doc)
                break
            except DuplicateKeyError:
                if attempt == MAX_ID_ATTEMPTS - 1:
                    raise
                doc.pop("_id", None)
                doc["submission_id"] = _allocate_submission_id(col)
    except Exception:
        _cleanup_documents(file_stage, documents)
        raise

    logger.info("submission created submission_id=%s", submission["submission_id"])
    _dispatch(
        background_tasks,
        (notifier.notify_admin_of_new_submission, submission),
        (notifier.notify_applicant_of_submission, submission),
    )
    return submission


def get_submission(col: Collection, record_id: str) -> dict:
    submission = get_submission_by_id(col, record_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    return submission


def check_submission_status(col: Collection, submission_id: str) -> dict:
    submission = get_submission_by_submission_id(col, submission_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    return {
        "submission_id": submission["submission_id"],
        "status": submission["status"],
        "submitted_at": submission["submitted_at"],
        "reviewed_at": submission.get("reviewed_at"),
        "applicant_name": submission["full_name"],
    }


def transition_status(
    col: Collection,
    record_id: str,
    new_status: SubmissionStatus,
    actor_id: str,
    notifier,
    background_tasks: BackgroundTasks,
    notes: str | None = None,
) -> dict:
    if notes and len(notes) > HISTORY_NOTES_MAX:
        raise _validation_error(
            "Validation error",
            [{"field": "internalNotes", "message": f"Notes must not exceed {HISTORY_NOTES_MAX} characters"}],
        )
    now = datetime.now(timezone.utc)
    updates = {
        "status": new_status.value,
        "reviewed_at": now,
        "reviewed_by": actor_id,
        "updated_at": now,
    }
    if notes:
        updates["internal_notes"] = notes
    entry = {
        "status": new_status.value,
        "changed_at": now,
        "changed_by": actor_id,
        "notes": notes or None,
    }
    submission = push_status_change(col, record_id, updates, entry)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")

    logger.info(
        "submission status changed submission_id=%s status=%s by=%s",
        submission["submission_id"],
        new_status.value,
        actor_id,
    )
    _dispatch(background_tasks, (notifier.notify_applicant_of_status_change, submission, new_status, notes))
    return submission


def delete_submission(col: Collection, record_id: str, actor_role: AdminRole, file_stage) -> dict:
    if actor_role != AdminRole.SUPER_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only super admins can delete submissions")
    submission = get_submission_by_id(col, record_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")

    _cleanup_documents(file_stage, submission.get("documents") or {})
    if not delete_submission_record(col, record_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    logger.info("submission deleted submission_id=%s", submission["submission_id"])
    return {"status": "ok"}


def query_submissions(
    col: Collection,
    status_filter: SubmissionStatus | None = None,
    search: str | None = None,
    sort_by: SortField = SortField.SUBMITTED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    page: int = 1,
    limit: int = 10,
) -> dict:
    search = search.strip() if search else None
    total, items = list_submissions(
        col,
        status=status_filter,
        search=search or None,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=(page - 1) * limit,
        limit=limit,
    )
    total_pages = math.ceil(total / limit)
    return {
        "submissions": items,
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "items_per_page": limit,
            "has_next_page": page < total_pages,
            "has_prev_page": page > 1,
        },
    }


def submission_stats(col: Collection) -> dict:
    counts = count_by_status(col)
    return {"total": sum(counts.values()), **counts}
