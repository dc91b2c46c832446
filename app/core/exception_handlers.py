"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Este módulo traduce las excepciones de la aplicación a respuestas JSON
consistentes con el código HTTP que corresponde a cada categoría de error.
"""

import logging
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.utils.error_handler import (
    AppException,
    ShopifyAPIException,
    ValidationException,
    WebhookAuthenticationException,
)

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para excepciones personalizadas de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción personalizada de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    logger.error(
        f"App Exception: {exc.message} - "
        f"Code: {exc.error_code.value} - "
        f"URL: {request.url} - "
        f"Details: {exc.details}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "application_error",
            "error_code": exc.error_code.value,
            "message": exc.message,
            "details": exc.details if get_settings().DEBUG else None,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


async def webhook_authentication_exception_handler(
    request: Request, exc: WebhookAuthenticationException
) -> JSONResponse:
    """
    Manejador para webhooks con firma inválida.

    La respuesta no incluye detalles de la verificación.
    """
    logger.warning(f"Webhook authentication failed: {exc.message} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "authentication_error",
            "message": "Unauthorized",
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
    )


async def shopify_api_exception_handler(request: Request, exc: ShopifyAPIException) -> JSONResponse:
    """
    Manejador específico para errores de la API de Shopify.

    Args:
        request: Request de FastAPI
        exc: Excepción de Shopify API

    Returns:
        JSONResponse: Respuesta 502 con información del error de Shopify
    """
    logger.error(
        f"Shopify API Exception: {exc.message} - "
        f"API Code: {exc.api_response_code} - "
        f"Rate Limited: {exc.rate_limited} - "
        f"Retry After: {exc.retry_after} - "
        f"URL: {request.url}"
    )

    headers = {}
    if exc.rate_limited and exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "shopify_api_error",
            "error_code": exc.error_code.value,
            "message": exc.message,
            "shopify_response_code": exc.api_response_code,
            "rate_limited": exc.rate_limited,
            "retry_after": exc.retry_after,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
            "request_id": request.headers.get("X-Request-ID"),
        },
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    """
    Manejador para errores de validación de datos (payload mal formado).

    Args:
        request: Request de FastAPI
        exc: Excepción de validación

    Returns:
        JSONResponse: Respuesta JSON con detalles de validación
    """
    logger.warning(f"Validation Exception: {exc.message} - Field: {exc.field} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "validation_error",
            "error_code": exc.error_code.value,
            "message": exc.message,
            "field": exc.field,
            "errors": exc.details.get("errors"),
            "expected_format": exc.expected_format,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Manejador para errores de validación de parámetros de FastAPI."""
    logger.warning(f"Request validation error: {exc.errors()} - URL: {request.url}")

    return JSONResponse(
        status_code=422,
        content={
            "error": True,
            "error_type": "validation_error",
            "message": "Invalid request parameters",
            "errors": [{"loc": list(err["loc"]), "message": err["msg"]} for err in exc.errors()],
            "path": str(request.url.path),
            "timestamp": _timestamp(),
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Manejador para HTTPException de FastAPI y Starlette.

    Args:
        request: Request de FastAPI
        exc: HTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "error_type": "http_error",
            "status_code": exc.status_code,
            "message": exc.detail,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Args:
        request: Request de FastAPI
        exc: Excepción no manejada

    Returns:
        JSONResponse: Respuesta JSON de error interno
    """
    logger.error(
        f"Unhandled Exception: {str(exc)} - "
        f"Type: {type(exc).__name__} - "
        f"URL: {request.url} - "
        f"Traceback: {traceback.format_exc()}"
    )

    debug = get_settings().DEBUG
    error_message = f"{type(exc).__name__}: {str(exc)}" if debug else "Internal server error occurred"

    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "error_type": "internal_server_error",
            "message": error_message,
            "path": str(request.url.path),
            "timestamp": _timestamp(),
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(WebhookAuthenticationException, webhook_authentication_exception_handler)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(ShopifyAPIException, shopify_api_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)

    # Manejadores HTTP estándar
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")
