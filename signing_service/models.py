from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
import uuid


def _require_utf8(value: Optional[str]) -> Optional[str]:
    # Lone surrogates from JSON escapes such as "\ud800" cannot be signed or echoed back
    if value is not None:
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("must be valid UTF-8 text") from None
    return value


class CreateDeviceRequest(BaseModel):
    algorithm: str
    label: Optional[str] = None

    check_utf8 = field_validator("algorithm", "label")(_require_utf8)


class SignDataRequest(BaseModel):
    data: str

    check_utf8 = field_validator("data")(_require_utf8)


class LegacySignDataRequest(BaseModel):
    id: uuid.UUID
    data: str

    check_utf8 = field_validator("data")(_require_utf8)


class DeviceResponse(BaseModel):
    id: str
    label: str
    algorithm: str
    public_key: str = Field(description="SubjectPublicKeyInfo PEM")
    signature_counter: int


class SignatureResponse(BaseModel):
    signature: str = Field(description="Base64 signature over signed_data")
    signed_data: str


class HealthResponse(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    errors: List[str] = Field(default_factory=list)
