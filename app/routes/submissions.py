from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pymongo.collection import Collection
from app.core.config import get_settings
from app.core.mongo import get_submission_collection
from app.models.enums import DocumentSlot
from app.controllers.file_controller import IncomingDocument, get_file_stage
from app.controllers.notification_controller import get_notifier
from app.controllers.submission_controller import (
    check_submission_status,
    create_submission,
    parse_submission,
)
from app.schemas.submission_schema import SubmissionCreated, SubmissionStatusCheck

router = APIRouter(prefix="/submissions", tags=["submissions"])


async def _read_upload(file: UploadFile | None, max_bytes: int) -> IncomingDocument | None:
    if file is None:
        return None
    # one byte past the limit is enough to report the size error
    buffer = bytearray()
    while len(buffer) <= max_bytes:
        chunk = await file.read(min(1024 * 1024, max_bytes + 1 - len(buffer)))
        if not chunk:
            break
        buffer.extend(chunk)
    return IncomingDocument(filename=file.filename or "file", content_type=file.content_type, data=bytes(buffer))


@router.post("", response_model=SubmissionCreated, status_code=status.HTTP_201_CREATED)
async def create_submission_route(
    background_tasks: BackgroundTasks,
    full_name: str | None = Form(default=None, alias="fullName"),
    phone_number: str | None = Form(default=None, alias="phoneNumber"),
    email: str | None = Form(default=None),
    date_of_birth: str | None = Form(default=None, alias="dateOfBirth"),
    street: str | None = Form(default=None),
    city: str | None = Form(default=None),
    state: str | None = Form(default=None),
    pincode: str | None = Form(default=None),
    identity_proof: UploadFile | None = File(default=None, alias="identityProof"),
    photograph: UploadFile | None = File(default=None),
    signature: UploadFile | None = File(default=None),
    col: Collection = Depends(get_submission_collection),
    file_stage=Depends(get_file_stage),
    notifier=Depends(get_notifier),
):
    data = parse_submission(
        {
            "fullName": full_name,
            "phoneNumber": phone_number,
            "email": email,
            "dateOfBirth": date_of_birth,
            "address": {"street": street, "city": city, "state": state, "pincode": pincode},
        }
    )
    max_bytes = get_settings().max_document_bytes
    files = {
        DocumentSlot.IDENTITY_PROOF: await _read_upload(identity_proof, max_bytes),
        DocumentSlot.PHOTOGRAPH: await _read_upload(photograph, max_bytes),
        DocumentSlot.SIGNATURE: await _read_upload(signature, max_bytes),
    }
    return await run_in_threadpool(
        create_submission, col, data, files, file_stage, notifier, max_bytes, background_tasks
    )


@router.get("/check/{submission_id}", response_model=SubmissionStatusCheck)
def check_submission_status_route(
    submission_id: str,
    col: Collection = Depends(get_submission_collection),
):
    return check_submission_status(col, submission_id)
