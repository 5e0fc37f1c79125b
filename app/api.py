"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.schemas import ApiError, ApiResponse, CombinedRecord
from errors import ErrorKind, ReconciliationError
from services.reconciliation import ReconciliationService

router = APIRouter(prefix="/api/plant-sensor", tags=["plant-sensor"])

_ERROR_STATUS = {
    ErrorKind.upstream_timeout: (status.HTTP_504_GATEWAY_TIMEOUT, "TIMEOUT_ERROR"),
    ErrorKind.upstream_unavailable: (status.HTTP_502_BAD_GATEWAY, "EXTERNAL_API_ERROR"),
    ErrorKind.parse_failed: (422, "DATA_PROCESSING_ERROR"),
    ErrorKind.storage_failed: (status.HTTP_500_INTERNAL_SERVER_ERROR, "STORAGE_ERROR"),
    ErrorKind.not_found: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
}


def get_service(request: Request) -> ReconciliationService:
    return request.app.state.service


def error_response(kind: ErrorKind, message: str, detail: str, extra: str | None = None) -> JSONResponse:
    status_code, code = _ERROR_STATUS[kind]
    body = ApiResponse[ApiError](
        success=False,
        message=message,
        data=ApiError(code=code, message=detail, details=extra),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def handle_reconciliation_error(_request: Request, exc: ReconciliationError) -> JSONResponse:
    return error_response(exc.kind, exc.message, exc.message, exc.details)


@router.get(
    "/plant-sensor-data",
    response_model=ApiResponse[List[CombinedRecord]],
    summary="Fetch both feeds, reconcile them and store the combined records.",
)
async def reconcile(
    service: ReconciliationService = Depends(get_service),
) -> ApiResponse[List[CombinedRecord]]:
    records = await service.run()
    return ApiResponse[List[CombinedRecord]](
        success=True,
        message=f"Successfully retrieved and stored data for {len(records)} trays",
        data=records,
    )


@router.get(
    "/stored-data",
    response_model=ApiResponse[List[CombinedRecord]],
    summary="List every stored combined record, newest first.",
)
async def stored_data(
    service: ReconciliationService = Depends(get_service),
) -> ApiResponse[List[CombinedRecord]]:
    records = await service.list_records()
    return ApiResponse[List[CombinedRecord]](
        success=True,
        message=f"Successfully retrieved {len(records)} stored records",
        data=records,
    )


@router.get(
    "/tray/{tray_id}",
    response_model=ApiResponse[CombinedRecord],
    summary="Fetch the latest stored record for a tray.",
    responses={status.HTTP_404_NOT_FOUND: {"model": ApiResponse[ApiError]}},
)
async def tray_record(
    tray_id: str,
    service: ReconciliationService = Depends(get_service),
) -> Any:
    record = await service.get_latest(tray_id)
    if record is None:
        return error_response(
            ErrorKind.not_found,
            f"No data found for tray {tray_id}",
            f"No plant sensor data found for tray ID: {tray_id}",
        )
    return ApiResponse[CombinedRecord](
        success=True,
        message=f"Successfully retrieved data for tray {tray_id}",
        data=record,
    )


@router.get(
    "/health",
    summary="Health check including the active storage backend.",
    status_code=status.HTTP_200_OK,
)
async def api_health(
    service: ReconciliationService = Depends(get_service),
) -> dict[str, str]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": service.store.backend,
    }


root_router = APIRouter()


@root_router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@root_router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
