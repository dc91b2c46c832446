"""
Gestión del ciclo de vida de la aplicación FastAPI.

Este módulo maneja los eventos de startup y shutdown: logging, carga del
mapeo de bundles, apertura del cliente de Shopify y creación del procesador
de webhooks.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import get_settings, log_configuration_warnings
from app.core.logging_config import setup_logging
from app.db.shopify_order_client import ShopifyOrderClient
from app.services.webhook_handler import WebhookProcessor
from app.utils.error_handler import ConfigurationException
from app.utils.mapping_loader import load_bundle_mapping

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    settings = get_settings()

    # === STARTUP ===
    try:
        await startup_configure_logging()
        logger.info(f"🚀 Iniciando {settings.APP_NAME} v{settings.APP_VERSION}...")

        await startup_verify_configuration()
        await startup_initialize_services(app)

        logger.info("🎉 Aplicación iniciada correctamente")

    except ConfigurationException as e:
        logger.critical(f"❌ Configuración inválida: {e.message}")
        await shutdown_close_connections(app)
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Error durante el startup: {e}")
        await shutdown_close_connections(app)
        sys.exit(1)

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")
    await shutdown_close_connections(app)
    logger.info("👋 Aplicación cerrada correctamente")


# === FUNCIONES DE STARTUP ===


async def startup_configure_logging():
    """Configura el sistema de logging."""
    setup_logging()
    logger.info("✅ Sistema de logging configurado")


async def startup_verify_configuration():
    """Loggea advertencias de configuración (no bloquean el arranque)."""
    warnings = log_configuration_warnings()
    if not warnings:
        logger.info("✅ Configuración verificada")


async def startup_initialize_services(app: FastAPI):
    """
    Carga el mapeo de bundles y crea el procesador de webhooks.

    Raises:
        ConfigurationException: Si el mapeo de bundles no es válido
    """
    settings = get_settings()

    bundle_mapping = load_bundle_mapping(
        path=settings.BUNDLE_MAPPINGS_FILE,
        raw_json=settings.BUNDLE_MAPPINGS_JSON,
    )
    app.state.bundle_mapping = bundle_mapping

    order_client = ShopifyOrderClient(settings)
    await order_client.initialize()
    app.state.order_client = order_client

    app.state.webhook_processor = WebhookProcessor(
        bundle_mapping=bundle_mapping,
        order_store=order_client,
        settings=settings,
    )
    logger.info(f"✅ Procesador de webhooks listo - Bundles: {', '.join(bundle_mapping.bundle_skus)}")


# === FUNCIONES DE SHUTDOWN ===


async def shutdown_close_connections(app: FastAPI):
    """Cierra el cliente de Shopify si fue creado."""
    order_client = getattr(app.state, "order_client", None)
    if order_client is None:
        return

    try:
        await order_client.close()
    except Exception as e:
        logger.error(f"❌ Error cerrando cliente de Shopify: {e}")
    app.state.order_client = None
    logger.info("✅ Conexiones cerradas")
