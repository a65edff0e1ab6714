from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from onboarding.schemas.enums import PersonType, ReviewDecision


class DocumentReview(BaseModel):
    decision: ReviewDecision = Field(..., description="approved or rejected")
    comment: Optional[str] = Field(None, max_length=500, description="Reviewer comment")


class DocumentTypeCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=20, pattern="^[A-Za-z0-9_]+$", description="Short code such as INE")
    name: str = Field(..., min_length=1, max_length=150)
    applies_to: List[PersonType] = Field(..., min_length=1, description="Person-types that must provide it")
    validity_days: Optional[int] = Field(None, ge=1, description="Null means the document never expires")
    optional: bool = False
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("code")
    @classmethod
    def upper(cls, v):
        return v.strip().upper()


class DocumentTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    applies_to: Optional[List[PersonType]] = Field(None, min_length=1)
    validity_days: Optional[int] = Field(None, ge=1)
    optional: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=500)
