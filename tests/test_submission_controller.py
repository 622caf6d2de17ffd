from datetime import date, datetime, timezone

import pytest
from fastapi import BackgroundTasks, HTTPException

from app.controllers import submission_controller as sc
from app.controllers.file_controller import IncomingDocument, StorageError
from app.models.enums import AdminRole, DocumentSlot, SortField, SortOrder, SubmissionStatus
from app.repositories.submission_repo import list_submissions
from app.schemas.submission_schema import SubmissionCreate

from conftest import JPEG_BYTES, PDF_BYTES, PNG_BYTES, RecordingNotifier, run_background

MAX = 2 * 1024 * 1024


def _data(name="Jane Doe", email="jane@example.com", phone="9876543210"):
    return SubmissionCreate(
        full_name=name,
        phone_number=phone,
        email=email,
        date_of_birth=date(2000, 1, 1),
        address={"street": "1 Main St", "city": "Pune", "state": "MH", "pincode": "411001"},
    )


def _files():
    return {
        DocumentSlot.IDENTITY_PROOF: IncomingDocument("aadhaar.pdf", "application/pdf", PDF_BYTES),
        DocumentSlot.PHOTOGRAPH: IncomingDocument("photo.jpg", "image/jpeg", JPEG_BYTES),
        DocumentSlot.SIGNATURE: IncomingDocument("sign.png", "image/png", PNG_BYTES),
    }


def _create(col, file_stage, notifier, **kwargs):
    background = BackgroundTasks()
    sub = sc.create_submission(col, _data(**kwargs), _files(), file_stage, notifier, MAX, background)
    run_background(background)
    return sub


def _transition(col, record_id, new_status, notifier, notes=None, actor="admin1"):
    background = BackgroundTasks()
    updated = sc.transition_status(col, record_id, new_status, actor, notifier, background, notes=notes)
    run_background(background)
    return updated


def test_create_persists_pending_submission_with_initial_history(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)

    assert sub["submission_id"].startswith("LL")
    assert sub["status"] == "pending"
    assert len(sub["status_history"]) == 1
    first = sub["status_history"][0]
    assert first["status"] == "pending"
    assert first["notes"] == "Application submitted"
    assert first["changed_by"] is None
    assert submissions_col.count_documents({}) == 1


def test_create_stores_three_documents(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)

    for slot in DocumentSlot:
        ref = sub["documents"][slot.value]
        assert ref["storage_key"].startswith(f"{sub['submission_id']}/{slot.value}_")
        assert ref["url"] == f"http://testserver/files/{ref['storage_key']}"
        assert file_stage.resolve(ref["storage_key"]).is_file()
    assert sub["documents"]["identity_proof"]["mime_type"] == "application/pdf"
    assert sub["documents"]["photograph"]["size"] == len(JPEG_BYTES)


def test_create_sends_admin_and_applicant_notifications(submissions_col, file_stage, notifier):
    _create(submissions_col, file_stage, notifier)
    assert sorted(notifier.channels()) == ["admin_new_submission", "applicant_confirmation"]


def test_create_succeeds_when_notifications_fail(submissions_col, file_stage):
    failing = RecordingNotifier(fail=True)
    sub = _create(submissions_col, file_stage, failing)
    assert sub["status"] == "pending"
    assert len(failing.calls) == 2
    assert submissions_col.count_documents({}) == 1


def test_create_rejects_bad_files_before_side_effects(submissions_col, file_stage, notifier):
    files = _files()
    files[DocumentSlot.SIGNATURE] = IncomingDocument("sign.pdf", "application/pdf", PDF_BYTES)
    with pytest.raises(HTTPException) as exc:
        sc.create_submission(submissions_col, _data(), files, file_stage, notifier, MAX, BackgroundTasks())
    assert exc.value.status_code == 400
    assert exc.value.detail["errors"][0]["field"] == "signature"
    assert submissions_col.count_documents({}) == 0
    assert not file_stage.root.exists() or not any(file_stage.root.rglob("*.*"))
    assert notifier.calls == []


def test_create_storage_failure_cleans_up_and_persists_nothing(submissions_col, file_stage, notifier, monkeypatch):
    real_store = file_stage.store

    def flaky_store(data, mime_type, slot, submission_id, original_name):
        if slot == DocumentSlot.SIGNATURE:
            raise StorageError("disk full")
        return real_store(data, mime_type, slot, submission_id, original_name)

    monkeypatch.setattr(file_stage, "store", flaky_store)
    with pytest.raises(HTTPException) as exc:
        _create(submissions_col, file_stage, notifier)

    assert exc.value.status_code == 502
    assert submissions_col.count_documents({}) == 0
    assert not any(p.is_file() for p in file_stage.root.rglob("*"))
    assert notifier.calls == []


def test_submission_ids_are_unique_when_generator_collides(submissions_col, file_stage, notifier, monkeypatch):
    first = _create(submissions_col, file_stage, notifier)
    candidates = iter([first["submission_id"], "LLUNIQUE0001"])
    monkeypatch.setattr(sc, "generate_submission_id", lambda: next(candidates))

    second = _create(submissions_col, file_stage, notifier, email="john@example.com")
    assert second["submission_id"] == "LLUNIQUE0001"


def test_generate_submission_id_format():
    sid = sc.generate_submission_id()
    assert sid.startswith("LL")
    assert sid.isalnum() and sid.isupper()
    assert sc.generate_submission_id() != sid


def test_transition_appends_history_and_updates_review_fields(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    updated = _transition(
        submissions_col, sub["id"], SubmissionStatus.APPROVED, notifier, notes="All documents verified"
    )

    assert updated["status"] == "approved"
    assert updated["reviewed_by"] == "admin1"
    assert updated["internal_notes"] == "All documents verified"
    assert updated["reviewed_at"] is not None
    assert len(updated["status_history"]) == len(sub["status_history"]) + 1
    last = updated["status_history"][-1]
    assert last["status"] == updated["status"]
    assert last["changed_by"] == "admin1"
    assert last["notes"] == "All documents verified"
    assert updated["status_history"][0] == sub["status_history"][0]
    assert notifier.calls[-1] == (
        "applicant_status_update",
        "jane@example.com",
        SubmissionStatus.APPROVED,
        "All documents verified",
    )


def test_transition_without_notes_keeps_internal_notes(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    _transition(submissions_col, sub["id"], SubmissionStatus.REJECTED, notifier, notes="Blurry photo")
    again = _transition(submissions_col, sub["id"], SubmissionStatus.REJECTED, notifier, actor="admin2")

    assert again["internal_notes"] == "Blurry photo"
    assert again["reviewed_by"] == "admin2"
    assert [h["status"] for h in again["status_history"]] == ["pending", "rejected", "rejected"]
    assert again["status_history"][-1]["notes"] is None


def test_transition_keeps_full_notes_in_history(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    notes = "n" * 500
    updated = _transition(submissions_col, sub["id"], SubmissionStatus.APPROVED, notifier, notes=notes)
    assert updated["internal_notes"] == notes
    assert updated["status_history"][-1]["notes"] == notes


def test_transition_rejects_notes_too_long_for_history(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    background = BackgroundTasks()
    with pytest.raises(HTTPException) as exc:
        sc.transition_status(
            submissions_col, sub["id"], SubmissionStatus.APPROVED, "admin1", notifier, background, notes="n" * 501
        )

    assert exc.value.status_code == 400
    assert exc.value.detail["errors"][0]["field"] == "internalNotes"
    stored = submissions_col.find_one({"submission_id": sub["submission_id"]})
    assert stored["status"] == "pending"
    assert len(stored["status_history"]) == 1
    assert background.tasks == []


def test_transition_succeeds_when_email_fails(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    updated = _transition(submissions_col, sub["id"], SubmissionStatus.APPROVED, RecordingNotifier(fail=True))
    assert updated["status"] == "approved"


def test_notifications_run_after_the_operation_returns(submissions_col, file_stage, notifier, background):
    sub = sc.create_submission(submissions_col, _data(), _files(), file_stage, notifier, MAX, background)

    assert notifier.calls == []
    assert len(background.tasks) == 2
    assert submissions_col.count_documents({}) == 1

    run_background(background)
    assert sorted(notifier.channels()) == ["admin_new_submission", "applicant_confirmation"]

    sc.transition_status(submissions_col, sub["id"], SubmissionStatus.APPROVED, "admin1", notifier, background)
    assert notifier.channels()[-1] == "applicant_confirmation"
    run_background(background)
    assert notifier.channels()[-1] == "applicant_status_update"


@pytest.mark.parametrize("record_id", ["64b7f0c2a1b2c3d4e5f60718", "not-an-object-id"])
def test_transition_unknown_record_is_not_found(submissions_col, notifier, background, record_id):
    with pytest.raises(HTTPException) as exc:
        sc.transition_status(submissions_col, record_id, SubmissionStatus.APPROVED, "admin1", notifier, background)
    assert exc.value.status_code == 404
    assert background.tasks == []


def test_delete_requires_super_admin(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    with pytest.raises(HTTPException) as exc:
        sc.delete_submission(submissions_col, sub["id"], AdminRole.ADMIN, file_stage)
    assert exc.value.status_code == 403
    assert submissions_col.count_documents({}) == 1


def test_delete_removes_documents_then_record(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    paths = [file_stage.resolve(ref["storage_key"]) for ref in sub["documents"].values()]

    assert sc.delete_submission(submissions_col, sub["id"], AdminRole.SUPER_ADMIN, file_stage) == {"status": "ok"}
    assert submissions_col.count_documents({}) == 0
    assert not any(p.exists() for p in paths)


def test_delete_tolerates_missing_documents(submissions_col, file_stage, notifier):
    sub = _create(submissions_col, file_stage, notifier)
    file_stage.resolve(sub["documents"]["photograph"]["storage_key"]).unlink()

    sc.delete_submission(submissions_col, sub["id"], AdminRole.SUPER_ADMIN, file_stage)
    assert submissions_col.count_documents({}) == 0


def test_query_filters_searches_and_paginates(submissions_col, file_stage, notifier):
    jane = _create(submissions_col, file_stage, notifier)
    _create(submissions_col, file_stage, notifier, name="Janet Smith", email="janet@example.com")
    _create(submissions_col, file_stage, notifier, name="Bob Jones", email="bob@example.com", phone="9123456780")
    _transition(submissions_col, jane["id"], SubmissionStatus.APPROVED, notifier)

    result = sc.query_submissions(submissions_col, status_filter=SubmissionStatus.PENDING, search="JANE")
    assert [s["full_name"] for s in result["submissions"]] == ["Janet Smith"]
    assert result["pagination"]["total_items"] == 1

    by_phone = sc.query_submissions(submissions_col, search="912345")
    assert [s["full_name"] for s in by_phone["submissions"]] == ["Bob Jones"]

    page = sc.query_submissions(submissions_col, sort_by=SortField.FULL_NAME, sort_order=SortOrder.ASC, page=2, limit=2)
    assert [s["full_name"] for s in page["submissions"]] == ["Janet Smith"]
    assert page["pagination"] == {
        "current_page": 2,
        "total_pages": 2,
        "total_items": 3,
        "items_per_page": 2,
        "has_next_page": False,
        "has_prev_page": True,
    }


def test_query_search_treats_input_literally(submissions_col, file_stage, notifier):
    _create(submissions_col, file_stage, notifier)
    assert sc.query_submissions(submissions_col, search=".*")["submissions"] == []


@pytest.mark.parametrize(
    "sort_by,sort_order",
    [(SortField.STATUS, SortOrder.DESC), (SortField.FULL_NAME, SortOrder.ASC), (SortField.SUBMITTED_AT, SortOrder.DESC)],
)
def test_query_pages_are_stable_when_sort_values_tie(submissions_col, sort_by, sort_order):
    submitted = datetime(2026, 10, 1, tzinfo=timezone.utc)
    for i in range(25):
        submissions_col.insert_one(
            {"submission_id": f"LLTIE{i:04d}", "full_name": "Same Name", "status": "pending", "submitted_at": submitted}
        )

    seen = []
    for page in (1, 2, 3):
        result = sc.query_submissions(submissions_col, sort_by=sort_by, sort_order=sort_order, page=page, limit=10)
        seen.extend(s["id"] for s in result["submissions"])

    assert len(seen) == 25
    assert len(set(seen)) == 25
    assert seen == sorted(seen, reverse=sort_order == SortOrder.DESC)


def test_list_projection_hides_storage_keys(submissions_col, file_stage, notifier):
    _create(submissions_col, file_stage, notifier)
    _total, items = list_submissions(
        submissions_col, None, None, SortField.SUBMITTED_AT, SortOrder.DESC, offset=0, limit=10
    )
    for ref in items[0]["documents"].values():
        assert "storage_key" not in ref
        assert ref["url"]


def test_stats_counts_add_up(submissions_col, file_stage, notifier):
    a = _create(submissions_col, file_stage, notifier)
    b = _create(submissions_col, file_stage, notifier, email="b@example.com")
    _create(submissions_col, file_stage, notifier, email="c@example.com")
    _transition(submissions_col, a["id"], SubmissionStatus.APPROVED, notifier)
    _transition(submissions_col, b["id"], SubmissionStatus.REJECTED, notifier)

    stats = sc.submission_stats(submissions_col)
    assert stats == {"total": 3, "pending": 1, "approved": 1, "rejected": 1}


def test_stats_on_empty_collection(submissions_col):
    assert sc.submission_stats(submissions_col) == {"total": 0, "pending": 0, "approved": 0, "rejected": 0}
