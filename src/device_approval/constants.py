"""Device lifecycle constants."""

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_DISABLED = "disabled"
STATUS_REJECTED = "rejected"

VALID_STATUSES = {STATUS_PENDING, STATUS_APPROVED, STATUS_DISABLED, STATUS_REJECTED}
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_APPROVED)

ACTION_REGISTERED = "registered"
ACTION_APPROVED = "approved"
ACTION_EXTENDED = "extended"
ACTION_DISABLED = "disabled"
ACTION_REJECTED = "rejected"
ACTION_REAPPROVED = "reapproved"

VALID_ACTIONS = {
    ACTION_REGISTERED,
    ACTION_APPROVED,
    ACTION_EXTENDED,
    ACTION_DISABLED,
    ACTION_REJECTED,
    ACTION_REAPPROVED,
}

SYSTEM_ACTOR = "system"
ADMIN_ACTOR = "admin"

AUTO_EXPIRED_REASON = "Automatically disabled due to expiration"

MIN_EXTENSION_DAYS = 1
MAX_EXTENSION_DAYS = 365
