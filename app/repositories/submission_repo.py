import re
from datetime import datetime
from typing import Any
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from app.models.enums import DocumentSlot, SortField, SortOrder, SubmissionStatus

SORT_FIELDS = {
    SortField.SUBMITTED_AT: "submitted_at",
    SortField.FULL_NAME: "full_name",
    SortField.STATUS: "status",
}

SEARCH_FIELDS = ("full_name", "email", "submission_id", "phone_number")

# storage keys stay internal to the detail view
LIST_PROJECTION = {f"documents.{slot.value}.storage_key": 0 for slot in DocumentSlot}


def _object_id(record_id: str) -> ObjectId | None:
    if not ObjectId.is_valid(record_id):
        return None
    return ObjectId(record_id)


def to_public(doc: dict[str, Any] | None) -> dict[str, Any] | None:
    if doc is None:
        return None
    out = dict(doc)
    out["id"] = str(out.pop("_id"))
    dob = out.get("date_of_birth")
    if isinstance(dob, datetime):
        out["date_of_birth"] = dob.date()
    return out


def submission_id_exists(col: Collection, submission_id: str) -> bool:
    return col.find_one({"submission_id": submission_id}, {"_id": 1}) is not None


def insert_submission(col: Collection, doc: dict[str, Any]) -> dict[str, Any]:
    result = col.insert_one(doc)
    return to_public(col.find_one({"_id": result.inserted_id}))


def get_submission_by_id(col: Collection, record_id: str) -> dict[str, Any] | None:
    oid = _object_id(record_id)
    if oid is None:
        return None
    return to_public(col.find_one({"_id": oid}))


def get_submission_by_submission_id(col: Collection, submission_id: str) -> dict[str, Any] | None:
    return to_public(col.find_one({"submission_id": submission_id}))


def push_status_change(
    col: Collection,
    record_id: str,
    updates: dict[str, Any],
    history_entry: dict[str, Any],
) -> dict[str, Any] | None:
    oid = _object_id(record_id)
    if oid is None:
        return None
    doc = col.find_one_and_update(
        {"_id": oid},
        {"$set": updates, "$push": {"status_history": history_entry}},
        return_document=ReturnDocument.AFTER,
    )
    return to_public(doc)


def delete_submission(col: Collection, record_id: str) -> bool:
    oid = _object_id(record_id)
    if oid is None:
        return False
    return col.delete_one({"_id": oid}).deleted_count == 1


def _build_filters(status: SubmissionStatus | None, search: str | None) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    if status:
        filters["status"] = status.value
    if search:
        pattern = re.escape(search)
        filters["$or"] = [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]
    return filters


def list_submissions(
    col: Collection,
    status: SubmissionStatus | None,
    search: str | None,
    sort_by: SortField,
    sort_order: SortOrder,
    offset: int,
    limit: int,
) -> tuple[int, list[dict[str, Any]]]:
    filters = _build_filters(status, search)
    direction = -1 if sort_order == SortOrder.DESC else 1
    cursor = (
        col.find(filters, LIST_PROJECTION)
        .sort([(SORT_FIELDS[sort_by], direction), ("_id", direction)])
        .skip(int(offset))
        .limit(int(limit))
    )
    items = [to_public(doc) for doc in cursor]
    total = col.count_documents(filters)
    return total, items


def count_by_status(col: Collection) -> dict[str, int]:
    pipeline = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
    counts = {s.value: 0 for s in SubmissionStatus}
    for row in col.aggregate(pipeline):
        if row.get("_id") in counts:
            counts[row["_id"]] = row["count"]
    return counts
