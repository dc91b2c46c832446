"""
Utilidad para cargar y validar el mapeo de bundles desde JSON.

El mapeo se carga una sola vez al arrancar y se trata como inmutable durante
toda la vida del proceso. Cualquier problema en el archivo aborta el arranque:
es preferible no procesar órdenes que dividir mal un pedido.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from app.api.v1.schemas.bundle_schemas import BundleMappingConfig
from app.domain.models import BundleMapping
from app.utils.error_handler import ConfigurationException, ErrorCode

logger = logging.getLogger(__name__)

# Ruta base del proyecto
BASE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_MAPPINGS_PATH = BASE_DIR / "config" / "bundle_mappings.json"


def resolve_mappings_path(path: Optional[str | Path]) -> Path:
    """
    Resuelve la ruta del archivo de mapeo (relativa a la raíz del proyecto).

    Args:
        path: Ruta absoluta o relativa; None usa la ruta por defecto

    Returns:
        Path: Ruta absoluta
    """
    if path is None:
        return DEFAULT_MAPPINGS_PATH
    path = Path(path)
    return path if path.is_absolute() else BASE_DIR / path


def parse_bundle_mapping(data: object, source: str = "<inline>") -> BundleMapping:
    """
    Valida el contenido ya decodificado y construye el BundleMapping.

    Args:
        data: Contenido JSON decodificado
        source: Origen del mapeo, para mensajes de error

    Returns:
        BundleMapping: Mapeo validado

    Raises:
        ConfigurationException: Si el mapeo no es válido
    """
    try:
        mapping = BundleMappingConfig.model_validate(data).to_domain()
    except (ValidationError, ValueError) as e:
        raise ConfigurationException(
            message=f"Invalid bundle mapping in {source}: {e}",
            setting="BUNDLE_MAPPINGS",
            error_code=ErrorCode.INVALID_BUNDLE_MAPPING,
        ) from e

    validate_bundle_mapping(mapping, source)
    return mapping


def validate_bundle_mapping(mapping: BundleMapping, source: str = "<inline>") -> None:
    """
    Verifica los invariantes del mapeo que no expresa el schema.

    - Ningún bundle puede quedar sin componentes (eliminaría la línea del pedido).
    - Un SKU no puede ser bundle y componente a la vez (la salida de una
      división volvería a dividirse en una re-entrega del webhook).

    Raises:
        ConfigurationException: Si se viola algún invariante
    """
    empty = mapping.empty_bundles()
    if empty:
        raise ConfigurationException(
            message=f"Bundles without components in {source}: {', '.join(sorted(empty))}",
            setting="BUNDLE_MAPPINGS",
            error_code=ErrorCode.INVALID_BUNDLE_MAPPING,
            details={"empty_bundles": sorted(empty)},
        )

    overlapping = mapping.overlapping_skus()
    if overlapping:
        raise ConfigurationException(
            message=(
                f"SKUs used both as bundle and as component in {source}: {', '.join(sorted(overlapping))}"
            ),
            setting="BUNDLE_MAPPINGS",
            error_code=ErrorCode.INVALID_BUNDLE_MAPPING,
            details={"overlapping_skus": sorted(overlapping)},
        )


def load_bundle_mapping(path: Optional[str | Path] = None, raw_json: Optional[str] = None) -> BundleMapping:
    """
    Carga el mapeo de bundles.

    Prioridad: JSON inline (BUNDLE_MAPPINGS_JSON) y después el archivo.

    Args:
        path: Ruta al archivo JSON
        raw_json: Contenido JSON inline

    Returns:
        BundleMapping: Mapeo validado e inmutable

    Raises:
        ConfigurationException: Si el mapeo no existe o no es válido
    """
    if raw_json is not None:
        source = "BUNDLE_MAPPINGS_JSON"
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as e:
            raise ConfigurationException(
                message=f"BUNDLE_MAPPINGS_JSON is not valid JSON: {e}",
                setting="BUNDLE_MAPPINGS_JSON",
                error_code=ErrorCode.INVALID_BUNDLE_MAPPING,
            ) from e
    else:
        file_path = resolve_mappings_path(path)
        source = str(file_path)
        if not file_path.is_file():
            raise ConfigurationException(
                message=f"Bundle mapping file not found: {file_path}",
                setting="BUNDLE_MAPPINGS_FILE",
                error_code=ErrorCode.INVALID_BUNDLE_MAPPING,
            )
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationException(
                message=f"Error reading bundle mapping file {file_path}: {e}",
                setting="BUNDLE_MAPPINGS_FILE",
                error_code=ErrorCode.INVALID_BUNDLE_MAPPING,
            ) from e

    mapping = parse_bundle_mapping(data, source)
    logger.info(f"Mapeo de bundles cargado desde {source}. {len(mapping)} bundles: {', '.join(mapping.bundle_skus)}")
    return mapping
