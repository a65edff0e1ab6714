from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field
from datetime import datetime
from typing import List, Optional

from onboarding.schemas.enums import PersonType, SubmissionStatus


class DocumentType(Document):
    code: Indexed(str, unique=True) = Field(..., description="Short code such as INE or CSF")
    name: Indexed(str, unique=True) = Field(..., description="Display name")
    applies_to: List[PersonType] = Field(default_factory=list, description="Person-types that must provide it")
    validity_days: Optional[int] = Field(None, ge=1, description="Days the document stays valid; null never expires")
    optional: bool = Field(default=False, description="Optional documents do not count toward completeness")
    description: Optional[str] = None

    class Settings:
        name = "document_types"


class DocumentSubmission(Document):
    client_id: PydanticObjectId
    document_type_id: PydanticObjectId
    storage_locator: str = Field(..., description="Object path inside the storage bucket")
    original_filename: str
    content_type: str
    size_bytes: int
    document_date: datetime = Field(..., description="Issue date of the document")
    expiration_date: Optional[datetime] = Field(None, description="document_date + validity_days")
    status: SubmissionStatus = Field(default=SubmissionStatus.pending)
    reviewer_comment: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    uploaded_by: Optional[str] = None
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "document_submissions"
