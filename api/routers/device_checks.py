"""
Device Check API Endpoints.

Free checks are served straight from the cache tiers; paid checks consume a
payment code exactly once.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_device_check_service
from api.models import DeviceCheckPayload, DeviceCheckResponse, ErrorResponse
from domain.check_result import ErrorKind
from services.device_check_service import DeviceCheckRequest, DeviceCheckService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/api/check",
    response_model=DeviceCheckResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input, payment or upstream rejection"},
        409: {"model": ErrorResponse, "description": "Transfer code in use by another request; retry later"},
        502: {"model": ErrorResponse, "description": "Verification API unreachable; retry later"},
    },
    summary="Check Device",
    description="Look up device data for an IMEI. Paid tiers require an unused transfer code."
)
def check_device(
    request: DeviceCheckPayload,
    service: DeviceCheckService = Depends(get_device_check_service),
):
    """
    Check a device.

    **Process:**
    1. Validates IMEI, service tier and (for paid tiers) transfer code
    2. Free tier: resolves device data from cache or upstream
    3. Paid tier: validates the payment, locks the code, checks it is unused,
       resolves device data and marks the code used

    **Example request:**
    ```json
    {"imei": "356938035643809", "service": 281, "transfer_code": "MDM00000001ABCD"}
    ```

    **Success response:**
    ```json
    {"success": true, "data": {...}}
    ```

    **Failure response:**
    ```json
    {"error": "Transfer code already used"}
    ```
    """
    try:
        result = service.check(
            DeviceCheckRequest(
                imei=request.imei,
                service=request.service,
                transfer_code=request.transfer_code,
            )
        )
    except Exception as e:
        logger.exception("Check device error")
        return JSONResponse(
            status_code=ErrorKind.INTERNAL_ERROR.status_code,
            content={"error": str(e) or "Internal server error"},
        )

    if not result.success:
        return JSONResponse(status_code=result.status_code, content={"error": result.error_message})

    return DeviceCheckResponse(success=True, data=result.data)
