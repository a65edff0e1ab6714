from onboarding.schemas.enums import (
    ApplicationStatus,
    ClientStatus,
    PersonType,
    ProductCode,
    ReviewDecision,
    SortDirection,
    SubmissionStatus,
    UserRole,
    UserStatus,
)
from onboarding.schemas.user_schemas import UserCreate
from onboarding.schemas.client_schema import (
    AddressSchema,
    ClientCreate,
    ClientListParams,
    ClientStatusUpdate,
    ClientUpdate,
    IncomeCreate,
)
from onboarding.schemas.document_schema import DocumentReview, DocumentTypeCreate, DocumentTypeUpdate
from onboarding.schemas.application_schema import (
    ApplicationCreate,
    ApplicationListParams,
    ApplicationTransition,
    RequestedProductSchema,
    RequestedProductUpdate,
)
