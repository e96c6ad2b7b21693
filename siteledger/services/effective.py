"""Decide which version of an approvable entity counts toward computed totals.

Every balance, statement and payroll aggregate passes its source rows through
:func:`resolve_effective` before summing. A row that has never been approved
(``pending-create``) or whose request was turned down (``rejected``) resolves
to ``None`` and is neither shown nor counted. Rows with a pending edit or a
pending delete keep counting with their last-approved values; the proposed
values in ``pending_payload`` are never merged here.

Reviewers want the opposite projection, so :func:`proposed_values` overlays
the pending payload for display only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from siteledger.models.enums import ApprovalStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

_NOT_COUNTED = frozenset({ApprovalStatus.PENDING_CREATE, ApprovalStatus.REJECTED})


class SupportsApproval(Protocol):
    approval_status: str | None
    pending_payload: dict[str, Any] | None


EntityT = TypeVar("EntityT", bound=SupportsApproval)


def resolve_effective(entity: EntityT) -> EntityT | None:
    """Return the entity if it counts toward totals, otherwise ``None``.

    A missing status is treated as approved.
    """
    if entity.approval_status in _NOT_COUNTED:
        return None
    return entity


def effective_only(entities: Iterable[EntityT]) -> list[EntityT]:
    """Filter a collection down to the rows that count, preserving order."""
    return [e for e in entities if resolve_effective(e) is not None]


def proposed_values(entity: SupportsApproval, current: dict[str, Any]) -> dict[str, Any]:
    """Overlay a pending edit on the current values, for review screens only."""
    if entity.approval_status != ApprovalStatus.PENDING_EDIT or not entity.pending_payload:
        return dict(current)
    return {**current, **entity.pending_payload}


def current_status(entity: SupportsApproval) -> ApprovalStatus:
    """The entity's approval status, with a missing value read as approved."""
    return ApprovalStatus(entity.approval_status or ApprovalStatus.APPROVED)


def is_unapproved_create(entity: SupportsApproval) -> bool:
    """True for a row that has never been approved: pending creation, or a rejected creation."""
    status = current_status(entity)
    if status == ApprovalStatus.PENDING_CREATE:
        return True
    rejected_status = getattr(entity, "rejected_status", None)
    return status == ApprovalStatus.REJECTED and rejected_status == ApprovalStatus.PENDING_CREATE
