from beanie import Document, PydanticObjectId
from pydantic import Field
from datetime import datetime
from typing import Optional

from onboarding.schemas.enums import PersonType


class IncomeDeclaration(Document):
    client_id: PydanticObjectId = Field(..., description="Client that declared the income")
    person_type: PersonType = Field(..., description="Client person-type when the income was declared")
    sector: str = Field(..., description="Economic sector")
    activity: str = Field(..., description="Economic activity (giro)")
    annual_income: float = Field(..., ge=0, description="Declared annual income")
    currency: str = Field(default="MXN", description="ISO 4217 currency code")
    recorded_by: Optional[str] = Field(None, description="Username that recorded the declaration")
    recorded_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "income_declarations"
