import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from plaque_registry.utils.response import error_response

logger = logging.getLogger(__name__)


class AppException(Exception):
    def __init__(self, message: str, status_code: int = 400, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.data = data


class ValidationError(AppException):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, status_code=400, data={"field": field} if field else None)
        self.field = field


class Unauthorized(AppException):
    def __init__(self, message: str = "Authentification requise"):
        super().__init__(message, status_code=401)


class Forbidden(AppException):
    def __init__(self, message: str = "Accès refusé. Rôle administrateur requis."):
        super().__init__(message, status_code=403)


class NotFound(AppException):
    def __init__(self, message: str = "Plaque non trouvée"):
        super().__init__(message, status_code=404)


class Conflict(AppException):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, status_code=409, data={"field": field} if field else None)
        self.field = field


class StoreUnavailable(AppException):
    def __init__(self, message: str = "Base de données indisponible"):
        super().__init__(message, status_code=503)


def _request_error_field(error: dict) -> str:
    # loc looks like ("body", "plateNumber") or ("query", "page")
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    return ".".join(loc)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.message, data=exc.data),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Route API introuvable" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = _request_error_field(first)
        message = f"{field}: {first.get('msg', 'valeur invalide')}" if field else "Données invalides"
        return JSONResponse(
            status_code=400,
            content=error_response(message, data={"field": field or None}),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_response("Erreur interne du serveur"),
        )
