from pydantic import BaseModel, Field
from typing import List, Optional

from onboarding.schemas.enums import ApplicationStatus, ProductCode


class RequestedProductSchema(BaseModel):
    # Business limits (credit term, ceiling) are checked in product_catalog so
    # every violation is reported together.
    product_code: ProductCode = Field(..., description="CS, CC, FA, AR, AH or CH")
    amount: float = Field(..., description="Requested amount; zero allowed for non-credit products")
    term_months: Optional[int] = Field(None, description="Term in months, required for credit products")
    observations: Optional[str] = Field(None, max_length=500)


class RequestedProductUpdate(BaseModel):
    product_code: Optional[ProductCode] = None
    amount: Optional[float] = None
    term_months: Optional[int] = None
    observations: Optional[str] = Field(None, max_length=500)


class ApplicationCreate(BaseModel):
    client_id: str = Field(..., description="Client applying for the products")
    products: List[RequestedProductSchema] = Field(..., description="Requested lines, in order")
    observations: Optional[str] = Field(None, max_length=1000)


class ApplicationTransition(BaseModel):
    status: ApplicationStatus = Field(..., description="Target status")
    comment: Optional[str] = Field(None, max_length=500)


class ApplicationListParams(BaseModel):
    client_id: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    product_code: Optional[ProductCode] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
