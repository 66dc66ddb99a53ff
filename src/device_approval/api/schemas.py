"""Pydantic schemas for the device approval API."""

from datetime import datetime
from typing import Annotated, Literal

from fastapi import Path
from pydantic import BaseModel, EmailStr, Field

AndroidId = Annotated[str, Field(min_length=10, max_length=100)]
AndroidIdPath = Annotated[str, Path(min_length=10, max_length=100)]
Notes = Annotated[str | None, Field(max_length=500)]
ActionBy = Annotated[str, Field(max_length=255)]
StatusType = Literal["pending", "approved", "disabled", "rejected"]


class DeviceRegister(BaseModel):
    """Request body for registering a device."""

    email: EmailStr
    android_id: AndroidId
    notes: Notes = None


class DeviceAction(BaseModel):
    """Request body for approve, disable, reject and reapprove."""

    action_by: ActionBy = "admin"
    notes: Notes = None


class DeviceExtend(BaseModel):
    """Request body for extending an approval."""

    additional_days: Annotated[int | None, Field(ge=1, le=365)] = None
    action_by: ActionBy = "admin"
    notes: Notes = None


class DeviceResponse(BaseModel):
    """Response for an active (pending or approved) device."""

    id: int
    email: str
    android_id: str
    is_approved: bool
    approved_at: datetime | None
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime
    notes: str | None

    model_config = {"from_attributes": True}


class DisabledDeviceResponse(BaseModel):
    """Response for a disabled device snapshot."""

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

    model_config = {"from_attributes": True}


class RejectedDeviceResponse(BaseModel):
    """Response for a rejected device snapshot."""

    id: int
    device_id: int
    email: str
    android_id: str
    original_created_at: datetime
    rejected_at: datetime
    rejected_by: str | None
    rejection_reason: str | None
    original_notes: str | None

    model_config = {"from_attributes": True}


class DeviceListResponse(BaseModel):
    """Response for listing active devices."""

    items: list[DeviceResponse]
    total: int
    limit: int
    offset: int


class DisabledDeviceListResponse(BaseModel):
    items: list[DisabledDeviceResponse]
    total: int
    limit: int
    offset: int


class RejectedDeviceListResponse(BaseModel):
    items: list[RejectedDeviceResponse]
    total: int
    limit: int
    offset: int


class ApprovalStatusResponse(BaseModel):
    """Status check: approval after expiry correction plus device fields."""

    android_id: str
    email: str
    status: StatusType
    is_approved: bool
    approved_at: datetime | None
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ApprovedResponse(BaseModel):
    """Boolean approval check."""

    android_id: str
    is_approved: bool
    message: str


class HistoryEntryResponse(BaseModel):
    """A single audit entry."""

    id: int
    device_id: int
    android_id: str
    action: str
    previous_status: bool | None
    new_status: bool | None
    action_by: str | None
    created_at: datetime
    notes: str | None

    model_config = {"from_attributes": True}


class ExpiryOutcomeResponse(BaseModel):
    """Per-device result of an expiration sweep."""

    android_id: str
    status: Literal["disabled", "error"]
    error: str | None = None

    model_config = {"from_attributes": True}


class ProcessExpiredResponse(BaseModel):
    processed: int
    results: list[ExpiryOutcomeResponse]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    api_port: int
    sweep_enabled: bool


class StatsResponse(BaseModel):
    """Statistics response."""

    pending_devices: int
    approved_devices: int
    disabled_devices: int
    rejected_devices: int
