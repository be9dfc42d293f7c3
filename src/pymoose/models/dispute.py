"""Dispute models."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from pymoose.models._base import EntityRef, MooseBaseModel, MooseEnum

# Legacy status spellings still emitted by older server builds.
_LEGACY_STATUS: dict[str, str] = {
    "pending": "submitted",
    "denied": "rejected",
    "in_review": "under_review",
}


class DisputeStatus(MooseEnum):
    """Dispute review state; only ever moves forward."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> MooseEnum:
        if isinstance(value, str) and value.strip().lower() in _LEGACY_STATUS:
            return cls(_LEGACY_STATUS[value.strip().lower()])
        return super()._missing_(value)

    @property
    def rank(self) -> int:
        """Position in the review pipeline; terminal states share the top rank."""
        return _STATUS_RANK[self]

    @property
    def is_active(self) -> bool:
        """A dispute blocks new disputes on its ticket until it is rejected."""
        return self is not DisputeStatus.REJECTED

    @property
    def is_terminal(self) -> bool:
        return self in (DisputeStatus.APPROVED, DisputeStatus.REJECTED)


_STATUS_RANK: dict[DisputeStatus, int] = {
    DisputeStatus.UNKNOWN: -1,
    DisputeStatus.SUBMITTED: 0,
    DisputeStatus.UNDER_REVIEW: 1,
    DisputeStatus.APPROVED: 2,
    DisputeStatus.REJECTED: 2,
}


class Evidence(MooseBaseModel):
    """Supporting file attached to a dispute."""

    id: str | None = None
    type: str = "document"
    filename: str = ""
    url: str = ""
    description: str = ""
    uploaded_at: datetime | None = None


class Dispute(MooseBaseModel):
    """A user's challenge of a ticket."""

    id: str
    dispute_number: str = ""
    ticket_id: EntityRef = None
    reason: str = ""
    reason_code: str = ""
    description: str = ""
    status: DisputeStatus = DisputeStatus.SUBMITTED
    evidence: tuple[Evidence, ...] = Field(default_factory=tuple)
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    resolved_at: datetime | None = None
    resolution: str = ""


def advance_dispute(existing: Dispute | None, incoming: Dispute) -> Dispute:
    """Merge a server copy of a dispute without letting its status move backwards.

    A slow response can carry an older review state than one already
    applied locally; in that case the newer local status (and its
    timestamps) are kept and everything else comes from *incoming*.
    """
    if existing is None or existing.id != incoming.id:
        return incoming
    if incoming.status.rank >= existing.status.rank:
        return incoming
    return incoming.model_copy(
        update={
            "status": existing.status,
            "reviewed_at": existing.reviewed_at,
            "resolved_at": existing.resolved_at,
        }
    )
