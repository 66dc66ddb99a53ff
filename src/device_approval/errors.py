"""Device lifecycle errors.

All errors derive from ``ValueError`` so callers can treat any refused
transition as a bad request, while the taxonomy classes let the HTTP layer
tell missing entities apart from invalid transitions.
"""


class DeviceError(ValueError):
    """Base class for refused lifecycle operations."""


class NotFoundError(DeviceError):
    """The addressed entity does not exist."""


class ConflictError(DeviceError):
    """The identifier is blacklisted, already active, or in the wrong state."""


class ValidationError(DeviceError):
    """Malformed operation input."""


class DeviceNotFound(NotFoundError):
    def __init__(self, android_id: str):
        super().__init__("Device not found")
        self.android_id = android_id


class DisabledDeviceNotFound(NotFoundError):
    def __init__(self, android_id: str):
        super().__init__("Disabled device not found")
        self.android_id = android_id


class AlreadyActive(ConflictError):
    def __init__(self, android_id: str):
        super().__init__("Device with this Android ID already exists and is active")
        self.android_id = android_id


class PreviouslyDisabled(ConflictError):
    def __init__(self, android_id: str):
        super().__init__("Device with this Android ID was previously disabled and cannot be re-registered")
        self.android_id = android_id


class PreviouslyRejected(ConflictError):
    def __init__(self, android_id: str):
        super().__init__("Device with this Android ID was previously rejected and cannot be re-registered")
        self.android_id = android_id


class NotApproved(ConflictError):
    def __init__(self, android_id: str):
        super().__init__("Cannot extend approval for non-approved device")
        self.android_id = android_id


class CannotRejectApproved(ConflictError):
    def __init__(self, android_id: str):
        super().__init__("Cannot reject an already approved device. Please disable it instead.")
        self.android_id = android_id


class InvalidExtension(ValidationError):
    def __init__(self, additional_days: int):
        super().__init__(f"Additional days must be between 1 and 365, got {additional_days}")
        self.additional_days = additional_days
