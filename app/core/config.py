"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
de la aplicación usando Pydantic Settings para validación automática.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "Shopify Order Splitter"
    SERVICE_NAME: str = "shopify-order-splitter"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080)
    WORKERS: int = Field(default=1)
    LOG_LEVEL: str = Field(default="INFO")

    # === CONFIGURACIÓN DE SEGURIDAD ===
    ALLOWED_HOSTS: Optional[List[str]] = Field(default=None)
    ENABLE_DOCS: bool = Field(default=True)

    # === CONFIGURACIÓN DE SHOPIFY ===
    SHOPIFY_SHOP_URL: str = Field(default="your-shop.myshopify.com")
    SHOPIFY_ACCESS_TOKEN: Optional[str] = Field(default=None)
    SHOPIFY_API_VERSION: str = Field(default="2024-01")
    SHOPIFY_WEBHOOK_SECRET: Optional[str] = Field(default=None)
    # Timeout total (segundos) de cada llamada a la Admin API
    SHOPIFY_REQUEST_TIMEOUT: int = Field(default=30)
    # Rechazar webhooks sin header X-Shopify-Hmac-Sha256 cuando hay secret
    REQUIRE_WEBHOOK_SIGNATURE: bool = Field(default=False)

    # === CONFIGURACIÓN DE BUNDLES ===
    BUNDLE_MAPPINGS_FILE: str = Field(default="config/bundle_mappings.json")
    # JSON inline; tiene prioridad sobre el archivo
    BUNDLE_MAPPINGS_JSON: Optional[str] = Field(default=None)
    WEBHOOK_DEDUP_CACHE_SIZE: int = Field(default=1000)

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_FILE_PATH: Optional[str] = Field(default="logs/app.log")
    LOG_MAX_SIZE_MB: int = Field(default=10)
    LOG_BACKUP_COUNT: int = Field(default=5)
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v):
        """Parsea ALLOWED_HOSTS como lista separada por comas."""
        if isinstance(v, str):
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("SHOPIFY_SHOP_URL")
    @classmethod
    def validate_shopify_url(cls, v):
        """Normaliza el dominio de la tienda (sin esquema ni barra final)."""
        v = v.strip().replace("https://", "").replace("http://", "").rstrip("/")
        if not v:
            raise ValueError("SHOPIFY_SHOP_URL no puede estar vacío")
        return v

    @field_validator("SHOPIFY_ACCESS_TOKEN", "SHOPIFY_WEBHOOK_SECRET", "BUNDLE_MAPPINGS_JSON", mode="before")
    @classmethod
    def empty_string_as_none(cls, v):
        """Un valor vacío en .env equivale a no configurado."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @field_validator("SHOPIFY_REQUEST_TIMEOUT", "WEBHOOK_DEDUP_CACHE_SIZE")
    @classmethod
    def validate_positive(cls, v):
        """Timeouts y tamaños de cache deben ser positivos."""
        if v <= 0:
            raise ValueError("el valor debe ser mayor que 0")
        return v

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def api_configured(self) -> bool:
        """Hay token para la Admin API."""
        return bool(self.SHOPIFY_ACCESS_TOKEN)

    @property
    def webhook_configured(self) -> bool:
        """Hay secret para verificar firmas de webhooks."""
        return bool(self.SHOPIFY_WEBHOOK_SECRET)

    @property
    def shopify_api_base_url(self) -> str:
        """Genera URL base de la Admin REST API de Shopify."""
        return f"https://{self.SHOPIFY_SHOP_URL}/admin/api/{self.SHOPIFY_API_VERSION}"

    def get_shopify_headers(self) -> dict:
        """
        Obtiene headers para requests a Shopify.

        Returns:
            dict: Headers de autenticación
        """
        return {
            "X-Shopify-Access-Token": self.SHOPIFY_ACCESS_TOKEN or "",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"{self.SERVICE_NAME}/{self.APP_VERSION}",
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()


def get_configuration_warnings(settings: Optional[Settings] = None) -> List[str]:
    """
    Lista problemas de configuración no fatales.

    El servicio arranca igualmente: sin token las actualizaciones fallarán,
    sin secret los webhooks no se verifican.

    Args:
        settings: Configuración a revisar (por defecto la global)

    Returns:
        List[str]: Mensajes de advertencia
    """
    settings = settings or get_settings()
    warnings = []

    if not settings.api_configured:
        warnings.append("SHOPIFY_ACCESS_TOKEN not configured - order updates will fail")

    if not settings.webhook_configured:
        warnings.append("SHOPIFY_WEBHOOK_SECRET not configured - webhooks will not be verified")
    elif not settings.REQUIRE_WEBHOOK_SIGNATURE:
        warnings.append("REQUIRE_WEBHOOK_SIGNATURE disabled - unsigned webhooks will be accepted")

    return warnings


def log_configuration_warnings(settings: Optional[Settings] = None) -> List[str]:
    """Loggea las advertencias de configuración y las devuelve."""
    warnings = get_configuration_warnings(settings)
    for warning in warnings:
        logger.warning(f"⚠️ {warning}")
    return warnings
