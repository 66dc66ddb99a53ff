"""Device approval API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from device_approval.api.schemas import (
    AndroidIdPath,
    ApprovalStatusResponse,
    ApprovedResponse,
    DeviceAction,
    DeviceExtend,
    DeviceListResponse,
    DeviceRegister,
    DeviceResponse,
    DisabledDeviceListResponse,
    DisabledDeviceResponse,
    ExpiryOutcomeResponse,
    HealthResponse,
    HistoryEntryResponse,
    ProcessExpiredResponse,
    RejectedDeviceListResponse,
    RejectedDeviceResponse,
    StatsResponse,
)
from device_approval.errors import DeviceError, NotFoundError
from device_approval.facade import DeviceFacade
from device_approval.sweeper import ExpirationSweeper

router = APIRouter()


def get_facade() -> DeviceFacade:
    """Dependency to get the facade - will be overridden at app creation."""
    raise NotImplementedError("Facade not configured")


def get_sweeper() -> ExpirationSweeper | None:
    """Dependency to get the sweeper that serializes manual sweeps, if any."""
    return None


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    from device_approval.service import _config

    return HealthResponse(
        status="healthy",
        service="device-approval",
        api_port=_config.api_port if _config else 8080,
        sweep_enabled=_config.sweep_enabled if _config else False,
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(facade: Annotated[DeviceFacade, Depends(get_facade)]):
    """Get device counts per lifecycle status."""
    counts = facade.get_stats()
    return StatsResponse(
        pending_devices=counts["pending"],
        approved_devices=counts["approved"],
        disabled_devices=counts["disabled"],
        rejected_devices=counts["rejected"],
    )


@router.post("/devices/register", response_model=DeviceResponse, status_code=201)
async def register_device(
    data: DeviceRegister,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Register a new device pending approval."""
    try:
        device = facade.register_device(data.email, data.android_id, data.notes)
    except DeviceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return DeviceResponse.model_validate(device)


@router.get("/devices", response_model=DeviceListResponse)
async def list_devices(
    facade: Annotated[DeviceFacade, Depends(get_facade)],
    limit: int = 100,
    offset: int = 0,
):
    """List all active devices."""
    devices = facade.get_all_devices(limit=limit, offset=offset)
    counts = facade.get_stats()

    return DeviceListResponse(
        items=[DeviceResponse.model_validate(d) for d in devices],
        total=counts["pending"] + counts["approved"],
        limit=limit,
        offset=offset,
    )


@router.get("/devices/disabled", response_model=DisabledDeviceListResponse)
async def list_disabled_devices(
    facade: Annotated[DeviceFacade, Depends(get_facade)],
    limit: int = 100,
    offset: int = 0,
):
    """List all disabled devices."""
    devices = facade.get_disabled_devices(limit=limit, offset=offset)

    return DisabledDeviceListResponse(
        items=[DisabledDeviceResponse.model_validate(d) for d in devices],
        total=facade.get_stats()["disabled"],
        limit=limit,
        offset=offset,
    )


@router.get("/devices/rejected", response_model=RejectedDeviceListResponse)
async def list_rejected_devices(
    facade: Annotated[DeviceFacade, Depends(get_facade)],
    limit: int = 100,
    offset: int = 0,
):
    """List all rejected devices."""
    devices = facade.get_rejected_devices(limit=limit, offset=offset)

    return RejectedDeviceListResponse(
        items=[RejectedDeviceResponse.model_validate(d) for d in devices],
        total=facade.get_stats()["rejected"],
        limit=limit,
        offset=offset,
    )


@router.post("/devices/process-expired", response_model=ProcessExpiredResponse)
async def process_expired_devices(
    facade: Annotated[DeviceFacade, Depends(get_facade)],
    sweeper: Annotated[ExpirationSweeper | None, Depends(get_sweeper)],
):
    """Disable every approved device whose approval has expired."""
    try:
        if sweeper is not None:
            results = sweeper.run_once()
        else:
            results = facade.process_expired_devices()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to process expired devices: {e}") from e

    if results is None:
        raise HTTPException(status_code=409, detail="Expiration sweep already running")

    return ProcessExpiredResponse(
        processed=len(results),
        results=[ExpiryOutcomeResponse.model_validate(r) for r in results],
    )


@router.get("/devices/{android_id}", response_model=DeviceResponse)
async def get_device(
    android_id: AndroidIdPath,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Get an active device by Android ID."""
    try:
        device = facade.get_device(android_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return DeviceResponse.model_validate(device)


@router.get("/devices/{android_id}/status", response_model=ApprovalStatusResponse)
async def check_approval_status(
    android_id: AndroidIdPath,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Check approval, disabling the device if its approval has expired."""
    try:
        status = facade.approval_status(android_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return ApprovalStatusResponse.model_validate(status)


@router.get("/devices/{android_id}/approved", response_model=ApprovedResponse)
async def is_device_approved(
    android_id: AndroidIdPath,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Boolean approval check."""
    try:
        status = facade.approval_status(android_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return ApprovedResponse(
        android_id=android_id,
        is_approved=status.is_approved,
        message="Device is approved" if status.is_approved else "Device is not approved",
    )


@router.get("/devices/{android_id}/history", response_model=list[HistoryEntryResponse])
async def get_device_history(
    android_id: AndroidIdPath,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Get a device's audit trail."""
    try:
        history = facade.get_device_history(android_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return [HistoryEntryResponse.model_validate(h) for h in history]


@router.patch("/devices/{android_id}/approve", response_model=DeviceResponse)
async def approve_device(
    android_id: AndroidIdPath,
    data: DeviceAction,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Approve a device for one approval window."""
    try:
        device = facade.approve_device(android_id, data.action_by, data.notes)
    except DeviceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return DeviceResponse.model_validate(device)


@router.patch("/devices/{android_id}/extend", response_model=DeviceResponse)
async def extend_device_approval(
    android_id: AndroidIdPath,
    data: DeviceExtend,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Extend an approved device's expiry."""
    try:
        device = facade.extend_device_approval(android_id, data.additional_days, data.action_by, data.notes)
    except DeviceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return DeviceResponse.model_validate(device)


@router.patch("/devices/{android_id}/disable", response_model=DisabledDeviceResponse)
async def disable_device(
    android_id: AndroidIdPath,
    data: DeviceAction,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Disable a pending or approved device."""
    try:
        device = facade.disable_device(android_id, data.action_by, data.notes)
    except DeviceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return DisabledDeviceResponse.model_validate(device)


@router.patch("/devices/{android_id}/reject", response_model=RejectedDeviceResponse)
async def reject_device(
    android_id: AndroidIdPath,
    data: DeviceAction,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Reject a pending device registration."""
    try:
        device = facade.reject_device(android_id, data.action_by, data.notes)
    except DeviceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return RejectedDeviceResponse.model_validate(device)


@router.patch("/devices/disabled/{android_id}/approve", response_model=DeviceResponse)
async def approve_disabled_device(
    android_id: AndroidIdPath,
    data: DeviceAction,
    facade: Annotated[DeviceFacade, Depends(get_facade)],
):
    """Re-approve a disabled device and return it to the active set."""
    try:
        device = facade.approve_disabled_device(android_id, data.action_by, data.notes)
    except DeviceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return DeviceResponse.model_validate(device)
