"""Dispatch layer between the HTTP boundary and the lifecycle engine."""

from device_approval.constants import ADMIN_ACTOR, SYSTEM_ACTOR
from device_approval.lifecycle import LifecycleEngine
from device_approval.records import (
    ActiveDevice,
    ApprovalStatus,
    DisabledDevice,
    ExpiryOutcome,
    HistoryEntry,
    RejectedDevice,
)


class DeviceFacade:
    """Exposes lifecycle operations and queries without adding behaviour."""

    def __init__(self, engine: LifecycleEngine):
        self.engine = engine

    # Registration
    def register_device(self, email: str, android_id: str, notes: str | None = None) -> ActiveDevice:
        return self.engine.register(email, android_id, notes)

    # Approval
    def approve_device(self, android_id: str, action_by: str = ADMIN_ACTOR, notes: str | None = None) -> ActiveDevice:
        return self.engine.approve(android_id, action_by, notes)

    def extend_device_approval(
        self,
        android_id: str,
        additional_days: int | None = None,
        action_by: str = ADMIN_ACTOR,
        notes: str | None = None,
    ) -> ActiveDevice:
        return self.engine.extend(android_id, additional_days, action_by, notes)

    def approve_disabled_device(
        self, android_id: str, action_by: str = ADMIN_ACTOR, notes: str | None = None
    ) -> ActiveDevice:
        return self.engine.reapprove_from_disabled(android_id, action_by, notes)

    def is_device_approved(self, android_id: str) -> bool:
        return self.engine.is_approved(android_id)

    def approval_status(self, android_id: str) -> ApprovalStatus:
        return self.engine.approval_status(android_id)

    # Actions
    def disable_device(self, android_id: str, action_by: str = SYSTEM_ACTOR, notes: str | None = None) -> DisabledDevice:
        return self.engine.disable(android_id, action_by, notes)

    def reject_device(self, android_id: str, action_by: str = ADMIN_ACTOR, notes: str | None = None) -> RejectedDevice:
        return self.engine.reject(android_id, action_by, notes)

    def process_expired_devices(self) -> list[ExpiryOutcome]:
        return self.engine.process_expired_devices()

    # Queries
    def get_device(self, android_id: str) -> ActiveDevice:
        return self.engine.get_device(android_id)

    def get_all_devices(self, limit: int | None = None, offset: int = 0) -> list[ActiveDevice]:
        return self.engine.list_devices(limit=limit, offset=offset)

    def get_disabled_devices(self, limit: int | None = None, offset: int = 0) -> list[DisabledDevice]:
        return self.engine.list_disabled(limit=limit, offset=offset)

    def get_rejected_devices(self, limit: int | None = None, offset: int = 0) -> list[RejectedDevice]:
        return self.engine.list_rejected(limit=limit, offset=offset)

    def get_device_history(self, android_id: str) -> list[HistoryEntry]:
        return self.engine.get_history(android_id)

    def get_stats(self) -> dict[str, int]:
        return self.engine.count_by_status()
