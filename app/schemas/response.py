from datetime import datetime
from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Success envelope shared by every endpoint."""
    message: str = Field(..., description="A human-readable message about the response.")
    data: Optional[DataType] = Field(None, description="Payload; null when there is nothing to return.")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable rejection reason, e.g. NOT_ENROLLED or COURSE_NOT_COMPLETED")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")

class ErrorResponse(BaseModel):
    """Error envelope returned for every rejected request."""
    error: ErrorDetail
    timestamp: str = Field(..., description="ISO 8601 timestamp of error")
    path: str = Field(..., description="Request path that caused the error")
    request_id: Optional[str] = Field(None, description="Matches the X-Request-ID response header")

    @classmethod
    def build(
        cls, code: str, message: str, path: str, request_id: Optional[str], details: Optional[Dict[str, Any]] = None
    ) -> "ErrorResponse":
        return cls(
            error=ErrorDetail(code=code, message=message, details=details),
            timestamp=datetime.utcnow().isoformat(),
            path=path,
            request_id=request_id,
        )
