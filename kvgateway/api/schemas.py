"""
API Schemas
Pydantic models for request/response validation in the kvgateway API
"""

from pydantic import BaseModel, Field, validator
from typing import List, Dict, Any, Optional
import json


# =======================
# Value Schemas
# =======================

class KeyValuePair(BaseModel):
    """Body of a write. Key validation happens in the write router."""
    key: Optional[str] = Field(None, alias="Key", description="Application key, must start with a letter A-Z")
    value: Optional[str] = Field(None, alias="Value", description="Value to store")

    @validator("key", "value", pre=True)
    def scalar_as_string(cls, v):
        # Numbers and booleans are stored in their JSON spelling
        if isinstance(v, (bool, int, float)):
            return json.dumps(v)
        return v

    class Config:
        populate_by_name = True


class RecordResponse(BaseModel):
    """One aggregated record with its source partition"""
    key: str
    value: str = Field(..., description="Value suffixed with the source partition id and kind")
    partition_id: Optional[str] = None
    partition_kind: Optional[str] = None


# =======================
# Error Schemas
# =======================

class ErrorResponse(BaseModel):
    """Error payload produced for every gateway exception"""
    error: str
    message: str
    details: List[Dict[str, Any]] = Field(default_factory=list)


# =======================
# Health Schemas
# =======================

class LivenessResponse(BaseModel):
    """Liveness probe response"""
    alive: bool = True


class ReadinessResponse(BaseModel):
    """Readiness probe response"""
    ready: bool
    service_name: str
    fanout_strategy: str
    proxy: Dict[str, Any] = Field(default_factory=dict)
