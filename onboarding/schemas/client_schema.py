from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date
from typing import Optional

from onboarding.schemas.enums import ClientStatus, PersonType


class AddressSchema(BaseModel):
    street: str = Field(..., min_length=1, max_length=200)
    exterior_number: str = Field(..., min_length=1, max_length=20)
    interior_number: Optional[str] = Field(None, max_length=20)
    neighborhood: str = Field(..., min_length=1, max_length=120)
    postal_code: str = Field(..., description="5-digit postal code")
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=1, max_length=120)
    country: str = Field(default="México", max_length=80)


class ClientCreate(BaseModel):
    person_type: PersonType = Field(..., description="PF, PF_AE or PM")
    rfc: str = Field(..., min_length=12, max_length=13, description="Tax id (RFC)")
    email: EmailStr = Field(..., description="Contact email")
    curp: Optional[str] = Field(None, min_length=18, max_length=18, description="CURP (individuals)")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    second_last_name: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[date] = None
    legal_name: Optional[str] = Field(None, max_length=200)
    legal_representative: Optional[str] = Field(None, max_length=200)
    incorporation_date: Optional[date] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[AddressSchema] = None

    @field_validator("rfc", "curp")
    @classmethod
    def upper(cls, v):
        return v.strip().upper() if v else v

    @field_validator("email")
    @classmethod
    def lower(cls, v):
        return v.lower()


class ClientUpdate(BaseModel):
    """Fields that may change after registration; person_type never does."""
    rfc: Optional[str] = Field(None, min_length=12, max_length=13)
    email: Optional[EmailStr] = None
    curp: Optional[str] = Field(None, min_length=18, max_length=18)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    second_last_name: Optional[str] = Field(None, max_length=100)
    legal_name: Optional[str] = Field(None, max_length=200)
    legal_representative: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[AddressSchema] = None

    @field_validator("rfc", "curp")
    @classmethod
    def upper(cls, v):
        return v.strip().upper() if v else v

    @field_validator("email")
    @classmethod
    def lower(cls, v):
        return v.lower() if v else v


class ClientStatusUpdate(BaseModel):
    status: ClientStatus


class ClientListParams(BaseModel):
    person_type: Optional[PersonType] = None
    status: Optional[ClientStatus] = None
    search: Optional[str] = Field(None, max_length=100)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: str = Field(default="created_at", pattern="^(created_at|rfc|email|legal_name|last_name)$")
    sort_dir: str = Field(default="desc", pattern="^(asc|desc)$")


class IncomeCreate(BaseModel):
    sector: str = Field(..., min_length=1, max_length=100, description="Economic sector")
    activity: str = Field(..., min_length=1, max_length=200, description="Economic activity (giro)")
    annual_income: float = Field(..., ge=0, description="Declared annual income")
    currency: str = Field(default="MXN", pattern="^[A-Z]{3}$", description="ISO 4217 currency code")

