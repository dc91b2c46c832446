"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo registra los endpoints base (raíz, health, config) y los
routers de la API v1.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request

from app.api.v1.endpoints.orders import router as orders_router
from app.api.v1.endpoints.webhooks import router as webhooks_router
from app.core.config import get_settings

logger = logging.getLogger(__name__)


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        """
        Endpoint raíz con información básica del servicio.

        Returns:
            Dict con información de la API
        """
        settings = get_settings()
        return {
            "message": settings.APP_NAME,
            "description": "Divide los bundles de las órdenes de Shopify en sus componentes",
            "version": settings.APP_VERSION,
            "status": "running",
            "documentation": "/docs" if (settings.DEBUG or settings.ENABLE_DOCS) else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "health": "/health",
                "config": "/config",
                "webhook": "/api/v1/webhooks/orders/create",
                "webhook_metrics": "/api/v1/webhooks/metrics",
                "manual_process": "/api/v1/orders/{order_id}/process",
            },
        }


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints de health check y configuración.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/health", tags=["Health"], summary="Health Check")
    async def health_check():
        """
        Liveness probe. No llama a servicios externos.
        """
        settings = get_settings()
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": settings.SERVICE_NAME,
            "version": settings.APP_VERSION,
        }

    @app.get("/config", tags=["Health"], summary="Configuration Summary")
    async def config_summary(request: Request):
        """
        Resumen de configuración sin exponer secretos.

        Returns:
            Dict con la tienda, los bundles configurados y si hay credenciales
        """
        settings = get_settings()
        mapping = getattr(request.app.state, "bundle_mapping", None)
        return {
            "shop_url": settings.SHOPIFY_SHOP_URL,
            "api_version": settings.SHOPIFY_API_VERSION,
            "bundle_skus": mapping.bundle_skus if mapping is not None else [],
            "webhook_configured": settings.webhook_configured,
            "api_configured": settings.api_configured,
            "require_webhook_signature": settings.REQUIRE_WEBHOOK_SIGNATURE,
        }


def configure_api_routers(app: FastAPI) -> None:
    """
    Registra los routers de la API v1.

    Args:
        app: Instancia de FastAPI
    """
    app.include_router(webhooks_router, prefix="/api/v1/webhooks", tags=["Webhooks"])
    app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers y endpoints de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers...")

    create_root_endpoints(app)
    create_health_endpoints(app)
    configure_api_routers(app)

    logger.info("✅ Routers configurados correctamente")
