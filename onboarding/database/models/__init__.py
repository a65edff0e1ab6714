from onboarding.database.models.user_model import User
from onboarding.database.models.client_model import Address, Client
from onboarding.database.models.income_model import IncomeDeclaration
from onboarding.database.models.document_model import DocumentSubmission, DocumentType
from onboarding.database.models.application_model import ProductApplication, RequestedProduct, StatusChange
from onboarding.database.models.audit_log_model import AuditLog

DOCUMENT_MODELS = [User, Client, IncomeDeclaration, DocumentType, DocumentSubmission, ProductApplication, AuditLog]
