"""SQLAlchemy models for the device approval database.

A device keeps one row for its whole life; its lifecycle state lives in the
``status`` column. Disable and reject metadata is kept in a side record so the
Disabled and Rejected views can be rebuilt without moving rows between tables.
All timestamps are naive UTC.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import declarative_base, relationship

from device_approval.constants import STATUS_APPROVED, STATUS_PENDING

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Device(Base):
    """Device identified by its Android ID."""

    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False)
    android_id = Column(String(255), nullable=False, unique=True)
    status = Column(String(16), nullable=False, default=STATUS_PENDING, index=True)
    approved_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    notes = Column(String(1000), nullable=True)

    removal = relationship("DeviceRemoval", back_populates="device", uselist=False)

    @property
    def is_approved(self) -> bool:
        """Stored approval flag, without regard to expiration."""
        return self.status == STATUS_APPROVED

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def __repr__(self) -> str:
        return f"<Device android_id={self.android_id} status={self.status}>"


class DeviceRemoval(Base):
    """Snapshot taken when a device is disabled or rejected."""

    __tablename__ = "device_removals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=False, unique=True)
    kind = Column(String(16), nullable=False)  # disabled | rejected
    was_approved = Column(Boolean, nullable=False, default=False)
    approved_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    removed_at = Column(DateTime, nullable=False, default=utcnow)
    removed_by = Column(String(255), nullable=True)
    reason = Column(String(1000), nullable=True)
    original_notes = Column(String(1000), nullable=True)

    device = relationship("Device", back_populates="removal")

    def __repr__(self) -> str:
        return f"<DeviceRemoval device_id={self.device_id} kind={self.kind}>"


class DeviceHistory(Base):
    """Append-only audit entry for a lifecycle transition."""

    __tablename__ = "device_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.id"), nullable=False, index=True)
    android_id = Column(String(255), nullable=False, index=True)
    action = Column(String(50), nullable=False)
    previous_status = Column(Boolean, nullable=True)
    new_status = Column(Boolean, nullable=True)
    action_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    notes = Column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<DeviceHistory android_id={self.android_id} action={self.action}>"
