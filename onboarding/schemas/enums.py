from enum import Enum


class PersonType(str, Enum):
    individual = "PF"
    individual_business = "PF_AE"
    corporate = "PM"

    @property
    def is_individual(self) -> bool:
        return self in (PersonType.individual, PersonType.individual_business)


class ClientStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class SubmissionStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ReviewDecision(str, Enum):
    approved = "approved"
    rejected = "rejected"


class ApplicationStatus(str, Enum):
    initiated = "initiated"
    in_review = "in_review"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class ProductCode(str, Enum):
    simple_credit = "CS"
    current_account_credit = "CC"
    auto_financing = "FA"
    leasing = "AR"
    savings_account = "AH"
    checking_account = "CH"


class UserRole(str, Enum):
    super = "SUPER"
    admin = "ADMIN"
    auditor = "AUDITOR"
    operator = "OPERADOR"


class UserStatus(str, Enum):
    active = "active"
    suspended = "suspended"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"
