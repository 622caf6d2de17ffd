import enum


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentSlot(str, enum.Enum):
    IDENTITY_PROOF = "identity_proof"
    PHOTOGRAPH = "photograph"
    SIGNATURE = "signature"


class SortField(str, enum.Enum):
    SUBMITTED_AT = "submittedAt"
    FULL_NAME = "fullName"
    STATUS = "status"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"
