"""Device lifecycle engine.

Enforces the device state machine over the device store::

    (unregistered) -> pending -> approved -> disabled
                         |          |           |
                         |          +-----------+ (reapproval)
                         +-> rejected

Every operation runs as one transaction: the status change, its removal
snapshot (if any) and the history entry either all land or none do.
Approval expiry is lazy; ``is_approved`` and the sweep disable devices whose
window has passed.
"""

import logging
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError

from device_approval.constants import (
    ACTION_APPROVED,
    ACTION_DISABLED,
    ACTION_EXTENDED,
    ACTION_REAPPROVED,
    ACTION_REGISTERED,
    ACTION_REJECTED,
    ACTIVE_STATUSES,
    ADMIN_ACTOR,
    AUTO_EXPIRED_REASON,
    MAX_EXTENSION_DAYS,
    MIN_EXTENSION_DAYS,
    STATUS_APPROVED,
    STATUS_DISABLED,
    STATUS_PENDING,
    STATUS_REJECTED,
    SYSTEM_ACTOR,
)
from device_approval.db.models import Device, DeviceRemoval, utcnow
from device_approval.db.repository import DeviceRepository
from device_approval.errors import (
    AlreadyActive,
    CannotRejectApproved,
    DeviceError,
    DeviceNotFound,
    DisabledDeviceNotFound,
    InvalidExtension,
    NotApproved,
    PreviouslyDisabled,
    PreviouslyRejected,
)
from device_approval.records import (
    ActiveDevice,
    ApprovalStatus,
    DisabledDevice,
    ExpiryOutcome,
    HistoryEntry,
    RejectedDevice,
)

logger = logging.getLogger(__name__)


def format_window(window: timedelta) -> str:
    """Describe an approval window in the largest whole unit."""
    seconds = int(window.total_seconds())
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds and seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"


class LifecycleEngine:
    """Atomic, audited device lifecycle transitions."""

    def __init__(
        self,
        repository: DeviceRepository,
        approval_window: timedelta = timedelta(days=3),
        default_extension_days: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.session = repository.session
        self.approval_window = approval_window
        self.default_extension_days = default_extension_days
        self.clock = clock

    @contextmanager
    def _transaction(self):
        """Run a block in one transaction on this thread's session."""
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self.session.close()

    def _get_active(self, android_id: str) -> Device:
        device = self.repository.get_by_android_id(android_id, statuses=ACTIVE_STATUSES, for_update=True)
        if device is None:
            raise DeviceNotFound(android_id)
        return device

    def _remove(self, device: Device, status: str, action_by: str, reason: str, now: datetime) -> DeviceRemoval:
        """Snapshot a device's approval state and take it out of the active set."""
        removal = DeviceRemoval(
            device=device,
            kind=status,
            was_approved=device.is_approved,
            approved_at=device.approved_at,
            expires_at=device.expires_at,
            removed_at=now,
            removed_by=action_by,
            reason=reason,
            original_notes=device.notes,
        )
        self.repository.add_removal(removal)

        self.repository.set_status(device, status, now)
        device.approved_at = None
        device.expires_at = None
        return removal

    def _disable_locked(self, device: Device, action_by: str, notes: str | None, now: datetime) -> DisabledDevice:
        """Disable a device already loaded for update in the current transaction."""
        was_approved = device.is_approved

        self._remove(device, STATUS_DISABLED, action_by, notes or "Device disabled", now)
        self.repository.add_history(
            device,
            ACTION_DISABLED,
            previous_status=was_approved,
            new_status=False,
            action_by=action_by,
            created_at=now,
            notes=notes or "Device disabled and moved to disabled devices",
        )
        return DisabledDevice.from_model(device)

    def _disable_if_expired(self, android_id: str, now: datetime) -> DisabledDevice | None:
        """Disable a device only if it is still approved and past its expiry.

        The expiry is re-checked on the locked row, so an approval or extension
        committed after the device was found expired leaves it untouched and
        returns None.
        """
        with self._transaction():
            device = self._get_active(android_id)
            if not device.is_approved or not device.is_expired(now):
                return None
            result = self._disable_locked(device, SYSTEM_ACTOR, AUTO_EXPIRED_REASON, now)

        logger.info("Disabled %s: %s", android_id, AUTO_EXPIRED_REASON)
        return result

    # Transitions

    def register(self, email: str, android_id: str, notes: str | None = None) -> ActiveDevice:
        """Register a new device as pending approval."""
        now = self.clock()

        with self._transaction():
            existing = self.repository.get_by_android_id(android_id, for_update=True)
            if existing is not None:
                if existing.status in ACTIVE_STATUSES:
                    raise AlreadyActive(android_id)
                if existing.status == STATUS_DISABLED:
                    raise PreviouslyDisabled(android_id)
                raise PreviouslyRejected(android_id)

            device = self.repository.add(
                Device(
                    email=email,
                    android_id=android_id,
                    status=STATUS_PENDING,
                    created_at=now,
                    updated_at=now,
                    notes=notes,
                )
            )
            self.repository.add_history(
                device,
                ACTION_REGISTERED,
                previous_status=False,
                new_status=False,
                action_by=SYSTEM_ACTOR,
                created_at=now,
                notes=notes or "Device registered and pending approval",
            )
            result = ActiveDevice.from_model(device)

        logger.info("Registered %s for %s", android_id, email)
        return result

    def approve(self, android_id: str, action_by: str = ADMIN_ACTOR, notes: str | None = None) -> ActiveDevice:
        """Approve an active device for one approval window starting now."""
        now = self.clock()

        with self._transaction():
            device = self._get_active(android_id)
            previous_status = device.is_approved

            self.repository.set_status(device, STATUS_APPROVED, now)
            device.approved_at = now
            device.expires_at = now + self.approval_window
            if notes:
                device.notes = notes

            self.repository.add_history(
                device,
                ACTION_APPROVED,
                previous_status=previous_status,
                new_status=True,
                action_by=action_by,
                created_at=now,
                notes=notes or f"Device approved for {format_window(self.approval_window)}",
            )
            result = ActiveDevice.from_model(device)

        logger.info("Approved %s by %s until %s", android_id, action_by, result.expires_at)
        return result

    def extend(
        self,
        android_id: str,
        additional_days: int | None = None,
        action_by: str = ADMIN_ACTOR,
        notes: str | None = None,
    ) -> ActiveDevice:
        """Push an approved device's expiry further out."""
        if additional_days is None:
            additional_days = self.default_extension_days
        if not MIN_EXTENSION_DAYS <= additional_days <= MAX_EXTENSION_DAYS:
            raise InvalidExtension(additional_days)

        now = self.clock()

        with self._transaction():
            device = self._get_active(android_id)
            if not device.is_approved:
                raise NotApproved(android_id)

            device.expires_at = (device.expires_at or now) + timedelta(days=additional_days)
            device.updated_at = now
            if notes:
                device.notes = notes

            self.repository.add_history(
                device,
                ACTION_EXTENDED,
                previous_status=True,
                new_status=True,
                action_by=action_by,
                created_at=now,
                notes=notes or f"Approval extended by {additional_days} days",
            )
            result = ActiveDevice.from_model(device)

        logger.info("Extended %s by %d days by %s", android_id, additional_days, action_by)
        return result

    def disable(self, android_id: str, action_by: str = SYSTEM_ACTOR, notes: str | None = None) -> DisabledDevice:
        """Take a pending or approved device out of the active set."""
        now = self.clock()

        with self._transaction():
            result = self._disable_locked(self._get_active(android_id), action_by, notes, now)

        logger.info("Disabled %s by %s: %s", android_id, action_by, result.disable_reason)
        return result

    def reject(self, android_id: str, action_by: str = ADMIN_ACTOR, notes: str | None = None) -> RejectedDevice:
        """Refuse a pending device registration."""
        now = self.clock()

        with self._transaction():
            device = self._get_active(android_id)
            if device.is_approved:
                raise CannotRejectApproved(android_id)

            self._remove(device, STATUS_REJECTED, action_by, notes or "Device registration rejected", now)
            self.repository.add_history(
                device,
                ACTION_REJECTED,
                previous_status=False,
                new_status=False,
                action_by=action_by,
                created_at=now,
                notes=notes or "Device registration rejected and moved to rejected devices",
            )
            result = RejectedDevice.from_model(device)

        logger.info("Rejected %s by %s", android_id, action_by)
        return result

    def reapprove_from_disabled(
        self,
        android_id: str,
        action_by: str = ADMIN_ACTOR,
        notes: str | None = None,
    ) -> ActiveDevice:
        """Bring a disabled device back as approved, keeping its original creation time."""
        now = self.clock()

        with self._transaction():
            device = self.repository.get_by_android_id(android_id, for_update=True)
            if device is not None and device.status in ACTIVE_STATUSES:
                raise AlreadyActive(android_id)
            if device is None or device.status != STATUS_DISABLED or device.removal is None:
                raise DisabledDeviceNotFound(android_id)

            removal = device.removal
            original_notes = removal.original_notes

            self.repository.delete_removal(removal)
            self.repository.set_status(device, STATUS_APPROVED, now)
            device.approved_at = now
            device.expires_at = now + self.approval_window
            device.notes = notes or original_notes or "Re-approved from disabled devices"

            self.repository.add_history(
                device,
                ACTION_REAPPROVED,
                previous_status=False,
                new_status=True,
                action_by=action_by,
                created_at=now,
                notes=notes or "Device re-approved from disabled devices",
            )
            result = ActiveDevice.from_model(device)

        logger.info("Re-approved %s by %s until %s", android_id, action_by, result.expires_at)
        return result

    # Expiration

    def is_approved(self, android_id: str) -> bool:
        """Check approval, disabling the device if its window has passed."""
        now = self.clock()

        with self._transaction():
            device = self.repository.get_by_android_id(android_id, statuses=ACTIVE_STATUSES)
            if device is None or not device.is_approved:
                return False
            expired = device.is_expired(now)

        if not expired:
            return True

        try:
            disabled = self._disable_if_expired(android_id, now)
        except DeviceNotFound:
            logger.info("Expired device %s was already disabled", android_id)
            return False

        if disabled is not None:
            return False

        # Approved or extended since the first read; report the current state.
        with self._transaction():
            device = self.repository.get_by_android_id(android_id, statuses=ACTIVE_STATUSES)
            return device is not None and device.is_approved and not device.is_expired(now)

    def approval_status(self, android_id: str) -> ApprovalStatus:
        """Status check: lazily corrected approval plus the device's fields."""
        approved = self.is_approved(android_id)

        with self._transaction():
            device = self.repository.get_by_android_id(android_id)
            if device is None:
                raise DeviceNotFound(android_id)

            return ApprovalStatus(
                android_id=device.android_id,
                email=device.email,
                status=device.status,
                is_approved=approved,
                approved_at=device.approved_at,
                expires_at=device.expires_at,
                created_at=device.created_at,
                updated_at=device.updated_at,
            )

    def process_expired_devices(self) -> list[ExpiryOutcome]:
        """Disable every approved device past its expiry, one transaction each."""
        now = self.clock()

        with self._transaction():
            expired = [device.android_id for device in self.repository.list_expired(now)]

        results = []
        for android_id in expired:
            try:
                disabled = self._disable_if_expired(android_id, now)
            except (DeviceError, SQLAlchemyError) as e:
                logger.warning("Failed to disable expired device %s: %s", android_id, e)
                results.append(ExpiryOutcome(android_id=android_id, status="error", error=str(e)))
            else:
                if disabled is None:
                    logger.info("Skipped %s: no longer expired", android_id)
                    continue
                results.append(ExpiryOutcome(android_id=android_id, status="disabled"))

        if results:
            logger.info("Processed %d expired devices", len(results))
        else:
            logger.debug("No expired devices found")
        return results

    # Queries

    def get_device(self, android_id: str) -> ActiveDevice:
        """Get an active (pending or approved) device."""
        with self._transaction():
            device = self.repository.get_by_android_id(android_id, statuses=ACTIVE_STATUSES)
            if device is None:
                raise DeviceNotFound(android_id)
            return ActiveDevice.from_model(device)

    def list_devices(self, limit: int | None = None, offset: int = 0) -> list[ActiveDevice]:
        with self._transaction():
            devices = self.repository.list_by_status(ACTIVE_STATUSES, limit=limit, offset=offset)
            return [ActiveDevice.from_model(d) for d in devices]

    def list_disabled(self, limit: int | None = None, offset: int = 0) -> list[DisabledDevice]:
        with self._transaction():
            devices = self.repository.list_by_status((STATUS_DISABLED,), limit=limit, offset=offset)
            return [DisabledDevice.from_model(d) for d in devices]

    def list_rejected(self, limit: int | None = None, offset: int = 0) -> list[RejectedDevice]:
        with self._transaction():
            devices = self.repository.list_by_status((STATUS_REJECTED,), limit=limit, offset=offset)
            return [RejectedDevice.from_model(d) for d in devices]

    def get_history(self, android_id: str) -> list[HistoryEntry]:
        """Get the audit trail of a device in any status."""
        with self._transaction():
            if self.repository.get_by_android_id(android_id) is None:
                raise DeviceNotFound(android_id)
            return [HistoryEntry.from_model(e) for e in self.repository.history_for(android_id)]

    def count_by_status(self) -> dict[str, int]:
        with self._transaction():
            return {
                status: self.repository.count(status)
                for status in (STATUS_PENDING, STATUS_APPROVED, STATUS_DISABLED, STATUS_REJECTED)
            }
