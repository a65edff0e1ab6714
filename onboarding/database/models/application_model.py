from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from onboarding.schemas.enums import ApplicationStatus, ProductCode


class RequestedProduct(BaseModel):
    line_id: PydanticObjectId = Field(default_factory=PydanticObjectId, description="Stable id of the line inside the application")
    product_code: ProductCode = Field(..., description="Product being requested")
    amount: float = Field(..., ge=0, description="Requested amount")
    term_months: Optional[int] = Field(None, description="Term in months (credit products)")
    observations: Optional[str] = None


class StatusChange(BaseModel):
    from_status: Optional[ApplicationStatus] = None
    to_status: ApplicationStatus
    changed_by: Optional[str] = None
    comment: Optional[str] = None
    changed_at: datetime = Field(default_factory=datetime.utcnow)


class ProductApplication(Document):
    folio: Indexed(str, unique=True) = Field(..., description="Human-facing unique identifier")
    client_id: PydanticObjectId
    status: ApplicationStatus = Field(default=ApplicationStatus.initiated)
    observations: Optional[str] = None
    products: List[RequestedProduct] = Field(default_factory=list, description="Requested lines in submitted order")
    status_history: List[StatusChange] = Field(default_factory=list)
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "product_applications"
