"""Configuration for the device approval service."""

from datetime import timedelta

from pydantic_settings import BaseSettings


class DeviceApprovalConfig(BaseSettings):
    """Device approval service configuration via environment variables."""

    # API settings
    api_port: int = 8080
    api_host: str = "0.0.0.0"

    # Database
    database_url: str = "sqlite:////var/lib/device-approval/devices.sqlite3"
    isolation_level: str = "SERIALIZABLE"

    # Approval lifecycle
    approval_window: timedelta = timedelta(days=3)  # seconds or ISO 8601, e.g. PT3M
    default_extension_days: int = 3

    # Expiration sweeper
    sweep_enabled: bool = True
    sweep_interval: int = 3600

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "DEVICE_APPROVAL_", "env_file": ".env", "extra": "ignore"}
