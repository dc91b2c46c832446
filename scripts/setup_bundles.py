#!/usr/bin/env python3
"""
Configuración interactiva del divisor de órdenes.

Pide los datos de la tienda y los bundles a dividir, valida el mapeo con
las mismas reglas que el servicio y genera:
    - .env
    - config/bundle_mappings.json

Uso:
    python scripts/setup_bundles.py
    python scripts/setup_bundles.py --mappings-only
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.utils.error_handler import ConfigurationException
from app.utils.mapping_loader import DEFAULT_MAPPINGS_PATH, parse_bundle_mapping

COLORS = {
    "info": "\033[36m",
    "success": "\033[32m",
    "warning": "\033[33m",
    "error": "\033[31m",
    "reset": "\033[0m",
}


def log(message: str, kind: str = "info"):
    print(f"{COLORS[kind]}{message}{COLORS['reset']}")


def ask(prompt: str, default: str = "") -> str:
    suffix = f" (default: {default})" if default else ""
    value = input(f"{prompt}{suffix}: ").strip()
    return value or default


def ask_yes_no(prompt: str) -> bool:
    return ask(f"{prompt} (y/n)").lower() == "y"


def ask_components() -> List[Dict]:
    """Pide los componentes de un bundle hasta que el usuario termine."""
    components = []
    while True:
        sku = ask("  SKU del componente")
        title = ask("  Título del componente")
        quantity = ask("  Cantidad por bundle", "1")
        try:
            quantity_value = int(quantity)
        except ValueError:
            log(f"  Cantidad inválida: {quantity}", "error")
            continue

        components.append({"sku": sku, "title": title, "quantity": quantity_value})
        if not ask_yes_no("  ¿Agregar otro componente?"):
            return components


def ask_mappings() -> Dict[str, List[Dict]]:
    """Pide los bundles y sus componentes."""
    mappings: Dict[str, List[Dict]] = {}
    while True:
        log("\nConfigurando un bundle SKU...")
        bundle_sku = ask("SKU del bundle (el SKU que se debe dividir)")
        if bundle_sku:
            mappings[bundle_sku] = ask_components()
        if not ask_yes_no("\n¿Agregar otro bundle?"):
            return mappings


def build_env_content(shop_url: str, access_token: str, webhook_secret: str, port: str) -> str:
    """Genera el contenido del archivo .env."""
    return (
        "# Shopify\n"
        f"SHOPIFY_SHOP_URL={shop_url}\n"
        f"SHOPIFY_ACCESS_TOKEN={access_token}\n"
        f"SHOPIFY_WEBHOOK_SECRET={webhook_secret}\n"
        "\n"
        "# Servidor\n"
        f"PORT={port}\n"
        "\n"
        "# Bundles\n"
        f"BUNDLE_MAPPINGS_FILE={DEFAULT_MAPPINGS_PATH.relative_to(project_root)}\n"
    )


def write_mappings(mappings: Dict[str, List[Dict]], path: Path = DEFAULT_MAPPINGS_PATH) -> None:
    """Valida y guarda el mapeo de bundles."""
    parse_bundle_mapping(mappings, source="setup")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(mappings, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def main(mappings_only: bool = False) -> int:
    log("🚀 Shopify Order Splitter Setup", "success")
    log("=====================================\n")

    env_content = None
    if not mappings_only:
        log("📋 Paso 1: Configuración de la tienda")
        shop_url = ask("Dominio de la tienda (ej: mi-tienda.myshopify.com)")
        access_token = ask("Access token de la Admin API")
        webhook_secret = ask("Webhook secret (opcional, Enter para omitir)")
        port = ask("Puerto", "8080")
        env_content = build_env_content(shop_url, access_token, webhook_secret, port)

    log("\n🔗 Paso 2: Mapeo de bundles")
    mappings = ask_mappings()

    log("\n📝 Paso 3: Generando archivos")
    try:
        write_mappings(mappings)
    except ConfigurationException as e:
        log(f"❌ Mapeo inválido: {e.message}", "error")
        return 1
    log(f"✅ Mapeo guardado en {DEFAULT_MAPPINGS_PATH}", "success")

    if env_content is not None:
        env_path = project_root / ".env"
        if env_path.exists() and not ask_yes_no(f"{env_path} ya existe. ¿Sobrescribir?"):
            log("⏭️  .env sin cambios", "warning")
        else:
            env_path.write_text(env_content, encoding="utf-8")
            log(f"✅ Archivo {env_path} creado", "success")

    log("\n🎯 Siguientes pasos", "success")
    log("1. Ejecutar el servicio:    python -m app.main", "warning")
    log("2. Probar el servicio:      python scripts/smoke_test.py", "warning")
    log("3. Registrar el webhook:    python configure_webhooks.py --url https://tu-servidor.com", "warning")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Configuración interactiva del divisor de órdenes")
    parser.add_argument("--mappings-only", action="store_true", help="Solo configurar el mapeo de bundles")
    args = parser.parse_args()

    try:
        sys.exit(main(mappings_only=args.mappings_only))
    except KeyboardInterrupt:
        log("\n🛑 Configuración cancelada", "warning")
        sys.exit(1)
