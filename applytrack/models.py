"""Data models for job application tracking."""

from typing import Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_validator,
    model_validator,
)

Status = Literal["Applied", "Interview", "Offer", "Rejected"]

STATUSES: tuple[str, ...] = ("Applied", "Interview", "Offer", "Rejected")
DEFAULT_STATUS = "Applied"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class Message(BaseModel):
    """A normalized mailbox message, already decoded to plain text."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    sender: str = Field(default="", alias="from")
    subject: str = ""
    body: str = ""
    date: str = ""

    @field_validator("sender", "subject", "body", "date", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return value


class ExtractionResult(BaseModel):
    """Oracle answer for a single message.

    Validated from the oracle's camelCase JSON. A job email must carry all four
    fields; anything short of that fails validation and is never used.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_job_email: StrictBool = Field(alias="isJobEmail")
    company: Optional[str] = None
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    status: Optional[Status] = None
    location: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _drop_fields_of_non_job(cls, data: Any) -> Any:
        # The oracle pads non-job answers with empty strings; only the flag matters.
        if isinstance(data, dict) and data.get("isJobEmail", data.get("is_job_email")) is False:
            return {"isJobEmail": False}
        return data

    @model_validator(mode="after")
    def _require_job_fields(self) -> "ExtractionResult":
        if not self.is_job_email:
            return self
        if not (self.company and self.job_title and self.status and self.location):
            raise ValueError("job email requires company, jobTitle, status and location")
        if not self.job_title.strip():
            raise ValueError("jobTitle must not be blank")
        return self


class Application(BaseModel):
    """A job application extracted from one message."""

    id: str
    company: str
    role: str
    location: Optional[str] = None
    date_applied: str = Field(pattern=DATE_PATTERN)
    last_update: str
    created_at: str
    status: Status
    source: str = "Email"
    salary: Optional[str] = None
    remote_policy: Optional[str] = None
    notes: Optional[str] = None
    email_id: Optional[str] = None
    confidence_score: int = Field(ge=0, le=100)
    is_duplicate: int = 0
    user_id: Optional[str] = None


class SimilarApplication(Application):
    """An existing application ranked against a candidate."""

    similarity: float = Field(ge=0.0, le=1.0)


class DuplicateCandidate(BaseModel):
    """The fields needed to look an application up by its natural key."""

    id: Optional[str] = None
    user_id: Optional[str] = None
    company: str
    role: str
    date_applied: str


Candidate = Union[Application, DuplicateCandidate]


class DuplicateVerdict(BaseModel):
    """Outcome of an authoritative duplicate check."""

    is_duplicate: bool
    duplicate_id: Optional[str] = None
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    reason: Optional[str] = None


class SyncStats(BaseModel):
    """Aggregate counts for one batch sync."""

    messages_seen: int = 0
    applications_extracted: int = 0
    duplicates_skipped: int = 0
    applications_added: int = 0
    errors: int = 0
