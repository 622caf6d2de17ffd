import re
from datetime import date, datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from app.models.enums import SubmissionStatus

FULL_NAME_RE = re.compile(r"^[A-Za-z\s]+$")
PHONE_RE = re.compile(r"^[6-9]\d{9}$")
PINCODE_RE = re.compile(r"^\d{6}$")
MIN_APPLICANT_AGE = 18
INITIAL_HISTORY_NOTE = "Application submitted"


def age_on(date_of_birth: date, on: date) -> int:
    """Whole years between date_of_birth and on."""
    years = on.year - date_of_birth.year
    if (on.month, on.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class Address(CamelModel):
    street: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    pincode: str

    @field_validator("pincode")
    @classmethod
    def _pincode(cls, value: str) -> str:
        if not PINCODE_RE.match(value):
            raise ValueError("Pincode must be exactly 6 digits")
        return value


class SubmissionCreate(CamelModel):
    full_name: str = Field(min_length=2, max_length=100)
    phone_number: str
    email: EmailStr
    date_of_birth: date
    address: Address

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, value: str) -> str:
        if not FULL_NAME_RE.match(value):
            raise ValueError("Full name can only contain letters and spaces")
        return value

    @field_validator("phone_number")
    @classmethod
    def _phone_number(cls, value: str) -> str:
        if not PHONE_RE.match(value):
            raise ValueError("Please enter a valid Indian mobile number")
        return value

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return value.lower()

    @field_validator("date_of_birth")
    @classmethod
    def _date_of_birth(cls, value: date) -> date:
        today = datetime.now(timezone.utc).date()
        if value > today:
            raise ValueError("Date of birth cannot be in the future")
        if age_on(value, today) < MIN_APPLICANT_AGE:
            raise ValueError("You must be at least 18 years old to apply")
        return value


class DocumentRefPublic(CamelModel):
    url: str
    original_name: str
    size: int
    mime_type: str
    uploaded_at: datetime


class DocumentRef(DocumentRefPublic):
    storage_key: str


class SubmissionDocumentsPublic(CamelModel):
    identity_proof: DocumentRefPublic
    photograph: DocumentRefPublic
    signature: DocumentRefPublic


class SubmissionDocuments(CamelModel):
    identity_proof: DocumentRef
    photograph: DocumentRef
    signature: DocumentRef


class StatusHistoryEntry(CamelModel):
    status: SubmissionStatus
    changed_at: datetime
    changed_by: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class SubmissionBase(CamelModel):
    id: str
    submission_id: str
    full_name: str
    phone_number: str
    email: str
    date_of_birth: date
    address: Address
    status: SubmissionStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    internal_notes: Optional[str] = None
    status_history: list[StatusHistoryEntry]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubmissionRead(SubmissionBase):
    documents: SubmissionDocuments


class SubmissionListItem(SubmissionBase):
    documents: SubmissionDocumentsPublic


class SubmissionCreated(CamelModel):
    submission_id: str
    status: SubmissionStatus
    submitted_at: datetime


class SubmissionStatusCheck(CamelModel):
    submission_id: str
    status: SubmissionStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    applicant_name: str


class StatusUpdate(CamelModel):
    status: SubmissionStatus
    internal_notes: Optional[str] = Field(default=None, max_length=500)


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


class SubmissionList(CamelModel):
    submissions: list[SubmissionListItem]
    pagination: Pagination


class SubmissionStats(CamelModel):
    total: int
    pending: int
    approved: int
    rejected: int
