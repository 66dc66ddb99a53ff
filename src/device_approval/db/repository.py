"""Repository pattern for device store operations.

The repository never commits; the lifecycle engine owns transaction
boundaries so that a state change and its history entry land together.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy.orm import Session, joinedload, scoped_session

from device_approval.constants import STATUS_APPROVED, VALID_ACTIONS, VALID_STATUSES
from device_approval.db.models import Device, DeviceHistory, DeviceRemoval


class DeviceRepository:
    """Repository for device, removal and history rows."""

    def __init__(self, session: scoped_session[Session]):
        self.session = session

    def get_by_android_id(
        self,
        android_id: str,
        statuses: Iterable[str] | None = None,
        for_update: bool = False,
    ) -> Device | None:
        """Get a device by its Android ID, optionally restricted to statuses."""
        query = self.session.query(Device).options(joinedload(Device.removal)).filter_by(android_id=android_id)

        if statuses is not None:
            query = query.filter(Device.status.in_(list(statuses)))

        if for_update:
            query = query.with_for_update(of=Device)

        return query.first()

    def list_by_status(
        self,
        statuses: Iterable[str],
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[Device]:
        """List devices in any of the given statuses."""
        query = (
            self.session.query(Device)
            .options(joinedload(Device.removal))
            .filter(Device.status.in_(list(statuses)))
            .order_by(Device.id)
        )

        if limit is not None:
            query = query.limit(limit)

        return query.offset(offset).all()

    def count(self, status: str | None = None) -> int:
        """Count devices with optional status filtering."""
        query = self.session.query(Device)
        if status:
            query = query.filter_by(status=status)
        return query.count()

    def list_expired(self, now: datetime) -> Sequence[Device]:
        """List approved devices whose approval window has passed."""
        return (
            self.session.query(Device)
            .filter(Device.status == STATUS_APPROVED, Device.expires_at < now)
            .order_by(Device.expires_at)
            .all()
        )

    def add(self, device: Device) -> Device:
        """Stage a new device and assign its id."""
        self.session.add(device)
        self.session.flush()
        return device

    def set_status(self, device: Device, status: str, now: datetime):
        """Move a device to a new lifecycle status."""
        if status not in VALID_STATUSES:
            raise ValueError(f"Invalid status: {status}")

        device.status = status
        device.updated_at = now

    def add_removal(self, removal: DeviceRemoval) -> DeviceRemoval:
        """Stage a disable/reject snapshot."""
        self.session.add(removal)
        self.session.flush()
        return removal

    def delete_removal(self, removal: DeviceRemoval):
        """Drop a disable/reject snapshot."""
        device = removal.device
        self.session.delete(removal)
        self.session.flush()
        if device is not None:
            self.session.expire(device, ["removal"])

    def add_history(
        self,
        device: Device,
        action: str,
        previous_status: bool | None,
        new_status: bool | None,
        action_by: str,
        created_at: datetime,
        notes: str | None = None,
    ) -> DeviceHistory:
        """Append an audit entry for a device."""
        if action not in VALID_ACTIONS:
            raise ValueError(f"Invalid action: {action}")

        entry = DeviceHistory(
            device_id=device.id,
            android_id=device.android_id,
            action=action,
            previous_status=previous_status,
            new_status=new_status,
            action_by=action_by,
            created_at=created_at,
            notes=notes,
        )
        self.session.add(entry)
        return entry

    def history_for(self, android_id: str) -> Sequence[DeviceHistory]:
        """Get the audit trail for an Android ID, oldest first."""
        return (
            self.session.query(DeviceHistory)
            .filter_by(android_id=android_id)
            .order_by(DeviceHistory.created_at, DeviceHistory.id)
            .all()
        )
