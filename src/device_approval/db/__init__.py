"""Device store database layer."""

from device_approval.db.database import dispose, get_engine, get_session, init_db
from device_approval.db.models import Base, Device, DeviceHistory, DeviceRemoval, utcnow
from device_approval.db.repository import DeviceRepository

__all__ = [
    "Base",
    "Device",
    "DeviceHistory",
    "DeviceRemoval",
    "DeviceRepository",
    "dispose",
    "get_engine",
    "get_session",
    "init_db",
    "utcnow",
]
