"""
Status Lifecycle
================
Approval states of a vendor and the actions that move between them.

    Pending QA → Approved | Rejected | On Hold
    On Hold    → Approved | Rejected
    Approved, Rejected → terminal

Assessments never change status; only an explicit action does.
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, List

from .errors import InvalidTransitionError
from .models import VendorRecord, VendorStatus, replace_fields

logger = logging.getLogger(__name__)


class VendorAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    HOLD = "hold"


ACTION_TARGETS: Dict[VendorAction, VendorStatus] = {
    VendorAction.APPROVE: VendorStatus.APPROVED,
    VendorAction.REJECT:  VendorStatus.REJECTED,
    VendorAction.HOLD:    VendorStatus.ON_HOLD,
}

ALLOWED_TRANSITIONS: Dict[VendorStatus, FrozenSet[VendorStatus]] = {
    VendorStatus.PENDING: frozenset({
        VendorStatus.APPROVED, VendorStatus.REJECTED, VendorStatus.ON_HOLD,
    }),
    VendorStatus.ON_HOLD: frozenset({VendorStatus.APPROVED, VendorStatus.REJECTED}),
    VendorStatus.APPROVED: frozenset(),
    VendorStatus.REJECTED: frozenset(),
}


def can_transition(current: VendorStatus, target: VendorStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def is_terminal(status: VendorStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def allowed_actions(status: VendorStatus) -> List[VendorAction]:
    """Actions a reviewer may take on a vendor in ``status``."""
    return [
        action for action, target in ACTION_TARGETS.items()
        if can_transition(status, target)
    ]


def next_status(current: VendorStatus, action: VendorAction) -> VendorStatus:
    target = ACTION_TARGETS[VendorAction(action)]
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot {VendorAction(action).value} a vendor that is {current.value}",
            {"from": current.value, "to": target.value},
        )
    return target


def apply_action(record: VendorRecord, action: VendorAction) -> VendorRecord:
    """Return ``record`` moved to the status ``action`` leads to."""
    target = next_status(record.status, action)
    logger.info("Vendor %s: %s → %s", record.id, record.status.value, target.value)
    return replace_fields(record, status=target)
