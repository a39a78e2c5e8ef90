"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Device Check Models
# ============================================================================

class DeviceCheckPayload(BaseModel):
    """Request to check a device. Field presence rules are enforced by the service."""
    imei: Optional[str] = Field(None, description="Device IMEI or serial number")
    service: Optional[int] = Field(0, description="Service tier id (0 = free check)")
    transfer_code: Optional[str] = Field(
        None,
        description="Payment code; required when the tier has a price"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "imei": "356938035643809",
                "service": 281,
                "transfer_code": "MDM00000001ABCD"
            }
        }


class DeviceCheckResponse(BaseModel):
    """Successful device check."""
    success: bool = True
    data: Any = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "data": {"model": "iPhone 13", "mdm_lock": False}
            }
        }


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Transfer code is being processed by another request"
            }
        }


class HealthResponse(BaseModel):
    status: str
    version: str
    service: str
