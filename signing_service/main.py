"""
HTTP transport for the signing service.

Thin FastAPI layer over SigningService. Success bodies are wrapped as
{"data": ...}; failures as {"errors": [...]}. Endpoints are synchronous
so concurrent sign requests run in parallel worker threads and contend
only on the target device's lock.

Run with:
    python -m signing_service
or:
    uvicorn signing_service.main:create_app --factory
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import API_VERSION, Settings, is_debug, load_settings
from .errors import DeviceNotFoundError, SignFailedError, UnsupportedAlgorithmError
from .logging_config import audit_log, set_request_id
from .models import (
    CreateDeviceRequest,
    DeviceResponse,
    ErrorResponse,
    HealthResponse,
    LegacySignDataRequest,
    SignatureResponse,
    SignDataRequest,
)
from .registry import InMemoryDeviceRegistry
from .service import DeviceInfo, SignatureResult, SigningService
from .signers import public_key_pem
from .util import parse_device_id


REQUEST_ID_HEADER = "X-Request-ID"


def device_response(info: DeviceInfo) -> DeviceResponse:
    return DeviceResponse(
        id=str(info.id),
        label=info.label,
        algorithm=info.algorithm,
        public_key=public_key_pem(info.public_key),
        signature_counter=info.signature_counter,
    )


def signature_response(result: SignatureResult) -> SignatureResponse:
    # The signer already returns base64; it is passed through, not re-encoded
    return SignatureResponse(
        signature=result.signature.decode("ascii"),
        signed_data=result.signed_data.decode("utf-8"),
    )


def _envelope(data: Any) -> Dict[str, Any]:
    return {"data": data}


def _errors(status_code: int, messages: List[str]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(errors=messages).model_dump())


def create_app(service: Optional[SigningService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Signing service to expose; a fresh in-memory one by default
        settings: Configuration snapshot; read from the environment by default
    """
    settings = settings or load_settings()
    if service is None:
        service = SigningService(InMemoryDeviceRegistry(), rsa_key_size=settings.rsa_key_size)

    app = FastAPI(title="Signature Device Service", version=API_VERSION, debug=is_debug())
    app.state.service = service
    app.state.settings = settings
    prefix = f"/api/{API_VERSION}"

    # ------------------------------------------------------------
    # Middleware and error mapping
    # ------------------------------------------------------------

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(UnsupportedAlgorithmError)
    async def _unsupported_algorithm(request: Request, exc: UnsupportedAlgorithmError):
        audit_log.request_rejected(request.url.path, str(exc))
        return _errors(400, [str(exc)])

    @app.exception_handler(DeviceNotFoundError)
    async def _device_not_found(request: Request, exc: DeviceNotFoundError):
        audit_log.device_not_found(str(exc.device_id))
        return _errors(404, [str(exc)])

    @app.exception_handler(SignFailedError)
    async def _sign_failed(request: Request, exc: SignFailedError):
        return _errors(500, [str(exc)])

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        messages = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        ]
        audit_log.request_rejected(request.url.path, "; ".join(messages))
        return _errors(400, messages or ["malformed request"])

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _errors(exc.status_code, [str(exc.detail)])

    def _device_id(raw_id: str):
        try:
            return parse_device_id(raw_id)
        except ValueError:
            audit_log.request_rejected(f"{prefix}/devices/{raw_id}", "invalid device id")
            raise HTTPException(400, "invalid device id") from None

    def _create(req: CreateDeviceRequest) -> DeviceInfo:
        info = service.create_device(req.algorithm, req.label or "")
        audit_log.device_created(str(info.id), info.algorithm, info.label)
        return info

    def _sign(device_id, data: str) -> SignatureResult:
        raw = data.encode("utf-8")
        try:
            result = service.sign_data(device_id, raw)
        except SignFailedError as exc:
            audit_log.sign_failed(str(device_id), str(exc))
            raise
        audit_log.data_signed(str(result.device_id), result.counter, len(raw))
        return result

    # ------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------

    @app.get(f"{prefix}/health")
    def health():
        return _envelope(HealthResponse(status="pass", version=API_VERSION).model_dump())

    @app.post(f"{prefix}/devices", status_code=201)
    def create_device(req: CreateDeviceRequest):
        return _envelope(device_response(_create(req)).model_dump())

    @app.get(f"{prefix}/devices")
    def list_devices():
        return _envelope([device_response(info).model_dump() for info in service.list_devices()])

    @app.get(f"{prefix}/devices/{{device_id}}")
    def get_device(device_id: str):
        return _envelope(device_response(service.get_device(_device_id(device_id))).model_dump())

    @app.post(f"{prefix}/devices/{{device_id}}/signatures")
    def sign_data(device_id: str, req: SignDataRequest):
        return _envelope(signature_response(_sign(_device_id(device_id), req.data)).model_dump())

    # Flat v0 routes: POST /new, POST /sign with the device id in the body
    @app.post(f"{prefix}/new")
    def legacy_create_device(req: CreateDeviceRequest):
        return _envelope(device_response(_create(req)).model_dump())

    @app.post(f"{prefix}/sign")
    def legacy_sign_data(req: LegacySignDataRequest):
        return _envelope(signature_response(_sign(req.id, req.data)).model_dump())

    return app
