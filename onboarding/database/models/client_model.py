from beanie import Document, Indexed
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from onboarding.schemas.enums import ClientStatus, PersonType


class Address(BaseModel):
    street: str = Field(..., description="Street name")
    exterior_number: str = Field(..., description="Exterior number")
    interior_number: Optional[str] = Field(None, description="Interior number")
    neighborhood: str = Field(..., description="Colonia")
    postal_code: str = Field(..., description="5-digit postal code")
    city: str = Field(..., description="City or municipality")
    state: str = Field(..., description="State")
    country: str = Field(default="México", description="Country")


class Client(Document):
    person_type: PersonType = Field(..., description="PF, PF_AE or PM")
    rfc: Indexed(str, unique=True) = Field(..., description="Tax id, upper-cased")
    email: Indexed(str, unique=True) = Field(..., description="Contact email, lower-cased")
    curp: Optional[str] = Field(None, description="Population registry key (individuals only)")

    first_name: Optional[str] = Field(None, description="First name (individuals)")
    last_name: Optional[str] = Field(None, description="Paternal last name (individuals)")
    second_last_name: Optional[str] = Field(None, description="Maternal last name (individuals)")
    birth_date: Optional[datetime] = Field(None, description="Birth date at midnight UTC (individuals)")

    legal_name: Optional[str] = Field(None, description="Razón social (corporate)")
    legal_representative: Optional[str] = Field(None, description="Legal representative (corporate)")
    incorporation_date: Optional[datetime] = Field(None, description="Incorporation date at midnight UTC (corporate)")

    phone: Optional[str] = Field(None, description="Contact phone")
    address: Optional[Address] = Field(None, description="Fiscal address")
    status: ClientStatus = Field(default=ClientStatus.active, description="Client status")

    created_by: Optional[str] = Field(None, description="Username that registered the client")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "clients"
