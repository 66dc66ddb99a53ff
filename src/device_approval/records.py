"""Detached views of the device store returned by the lifecycle engine.

Pending and approved devices are reported as ``ActiveDevice``; disabled and
rejected devices as snapshots carrying the removal metadata.
"""

from dataclasses import dataclass
from datetime import datetime

from device_approval.db.models import Device, DeviceHistory


@dataclass(frozen=True)
class ActiveDevice:
    id: int
    email: str
    android_id: str
    is_approved: bool
    approved_at: datetime | None
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime
    notes: str | None

    @classmethod
    def from_model(cls, device: Device) -> "ActiveDevice":
        return cls(
            id=device.id,
            email=device.email,
            android_id=device.android_id,
            is_approved=device.is_approved,
            approved_at=device.approved_at,
            expires_at=device.expires_at,
            created_at=device.created_at,
            updated_at=device.updated_at,
            notes=device.notes,
        )


@dataclass(frozen=True)
class DisabledDevice:
    id: int
    device_id: int
    email: str
    android_id: str
    original_created_at: datetime
    was_approved: bool
    approved_at: datetime | None
    expires_at: datetime | None
    disabled_at: datetime
    disabled_by: str | None
    disable_reason: str | None
    original_notes: str | None

    @classmethod
    def from_model(cls, device: Device) -> "DisabledDevice":
        removal = device.removal
        return cls(
            id=removal.id,
            device_id=device.id,
            email=device.email,
            android_id=device.android_id,
            original_created_at=device.created_at,
            was_approved=removal.was_approved,
            approved_at=removal.approved_at,
            expires_at=removal.expires_at,
            disabled_at=removal.removed_at,
            disabled_by=removal.removed_by,
            disable_reason=removal.reason,
            original_notes=removal.original_notes,
        )


@dataclass(frozen=True)
class RejectedDevice:
    id: int
    device_id: int
    email: str
    android_id: str
    original_created_at: datetime
    rejected_at: datetime
    rejected_by: str | None
    rejection_reason: str | None
    original_notes: str | None

    @classmethod
    def from_model(cls, device: Device) -> "RejectedDevice":
        removal = device.removal
        return cls(
            id=removal.id,
            device_id=device.id,
            email=device.email,
            android_id=device.android_id,
            original_created_at=device.created_at,
            rejected_at=removal.removed_at,
            rejected_by=removal.removed_by,
            rejection_reason=removal.reason,
            original_notes=removal.original_notes,
        )


@dataclass(frozen=True)
class HistoryEntry:
    id: int
    device_id: int
    android_id: str
    action: str
    previous_status: bool | None
    new_status: bool | None
    action_by: str | None
    created_at: datetime
    notes: str | None

    @classmethod
    def from_model(cls, entry: DeviceHistory) -> "HistoryEntry":
        return cls(
            id=entry.id,
            device_id=entry.device_id,
            android_id=entry.android_id,
            action=entry.action,
            previous_status=entry.previous_status,
            new_status=entry.new_status,
            action_by=entry.action_by,
            created_at=entry.created_at,
            notes=entry.notes,
        )


@dataclass(frozen=True)
class ApprovalStatus:
    """Result of a status check: lazily corrected approval plus device fields."""

    android_id: str
    email: str
    status: str
    is_approved: bool
    approved_at: datetime | None
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ExpiryOutcome:
    """Per-device result of an expiration sweep."""

    android_id: str
    status: str  # disabled | error
    error: str | None = None
