"""Status lifecycle of a product application.

The allowed moves live in one table. Callers check a move here and then
apply it with a conditional update filtered on the status they observed.
"""
from typing import FrozenSet, Set, Tuple

from onboarding.core.exceptions import InvalidStateError
from onboarding.schemas.enums import ApplicationStatus

INITIAL_STATUS = ApplicationStatus.initiated

ALLOWED_TRANSITIONS: FrozenSet[Tuple[ApplicationStatus, ApplicationStatus]] = frozenset({
    (ApplicationStatus.initiated, ApplicationStatus.in_review),
    (ApplicationStatus.initiated, ApplicationStatus.cancelled),
    (ApplicationStatus.in_review, ApplicationStatus.approved),
    (ApplicationStatus.in_review, ApplicationStatus.rejected),
    (ApplicationStatus.in_review, ApplicationStatus.cancelled),
})

TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset({
    ApplicationStatus.approved,
    ApplicationStatus.rejected,
    ApplicationStatus.cancelled,
})


def is_terminal(status: ApplicationStatus) -> bool:
    return ApplicationStatus(status) in TERMINAL_STATUSES


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return (ApplicationStatus(current), ApplicationStatus(target)) in ALLOWED_TRANSITIONS


def allowed_targets(current: ApplicationStatus) -> Set[ApplicationStatus]:
    current = ApplicationStatus(current)
    return {to for (frm, to) in ALLOWED_TRANSITIONS if frm == current}


def ensure_transition(current: ApplicationStatus, target: ApplicationStatus) -> None:
    current = ApplicationStatus(current)
    target = ApplicationStatus(target)
    if can_transition(current, target):
        return
    if is_terminal(current):
        message = f"Application is already {current.value}; no further transitions are allowed"
    else:
        message = f"Invalid status transition: {current.value} -> {target.value}"
    raise InvalidStateError(message, current=current.value, target=target.value)
