#!/usr/bin/env python3
"""
Script para registrar el webhook orders/create en Shopify.

Apunta el webhook al endpoint /api/v1/webhooks/orders/create del servicio
desplegado. Si ya existe un webhook orders/create con la misma dirección,
no se crea de nuevo.

Uso:
    python configure_webhooks.py --url https://tu-servidor.com
    python configure_webhooks.py --list
"""

import argparse
import asyncio
import os
from typing import Dict, List

import aiohttp

from app.core.config import get_settings

settings = get_settings()

WEBHOOK_TOPIC = "orders/create"
WEBHOOK_PATH = "/api/v1/webhooks/orders/create"


def webhooks_url() -> str:
    return f"{settings.shopify_api_base_url}/webhooks.json"


async def create_webhook(session: aiohttp.ClientSession, webhook_data: Dict) -> Dict:
    """
    Crea un webhook en Shopify.

    Args:
        session: Sesión HTTP con el token en los headers
        webhook_data: Datos del webhook

    Returns:
        Dict: Respuesta de Shopify (vacío si falló)
    """
    async with session.post(webhooks_url(), json={"webhook": webhook_data}) as response:
        if response.status == 201:
            result = await response.json()
            print(f"✅ Webhook creado exitosamente: {webhook_data['topic']}")
            return result

        error = await response.text()
        print(f"❌ Error creando webhook {webhook_data['topic']}: {response.status} - {error}")
        return {}


async def list_existing_webhooks(session: aiohttp.ClientSession) -> List[Dict]:
    """
    Lista webhooks existentes en Shopify.

    Args:
        session: Sesión HTTP

    Returns:
        List[Dict]: Lista de webhooks existentes
    """
    async with session.get(webhooks_url()) as response:
        if response.status == 200:
            result = await response.json()
            return result.get("webhooks", [])

        print(f"❌ Error listando webhooks: {response.status}")
        return []


async def main(base_url: str, list_only: bool = False):
    """
    Función principal para configurar el webhook.
    """
    if not settings.api_configured:
        print("❌ SHOPIFY_ACCESS_TOKEN no configurado. Ejecuta scripts/setup_bundles.py o edita .env")
        return

    print(f"🔧 Configurando webhook {WEBHOOK_TOPIC} en {settings.SHOPIFY_SHOP_URL}...")

    async with aiohttp.ClientSession(headers=settings.get_shopify_headers()) as session:
        print("\n📋 Listando webhooks existentes...")
        existing_webhooks = await list_existing_webhooks(session)

        if existing_webhooks:
            print(f"Webhooks existentes ({len(existing_webhooks)}):")
            for wh in existing_webhooks:
                print(f"  - {wh.get('topic')}: {wh.get('address')}")
        else:
            print("No hay webhooks configurados actualmente.")

        if list_only:
            return

        address = f"{base_url.rstrip('/')}{WEBHOOK_PATH}"
        already_registered = any(
            wh.get("topic") == WEBHOOK_TOPIC and wh.get("address") == address for wh in existing_webhooks
        )
        if already_registered:
            print(f"\n⏭️  Webhook ya existe: {WEBHOOK_TOPIC} → {address}")
            return

        result = await create_webhook(session, {"topic": WEBHOOK_TOPIC, "address": address, "format": "json"})
        if result:
            print(f"\n🎯 Shopify enviará {WEBHOOK_TOPIC} a: {address}")
            if not settings.webhook_configured:
                print("⚠️  Configura SHOPIFY_WEBHOOK_SECRET para verificar la firma de los webhooks")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Registra el webhook orders/create en Shopify")
    parser.add_argument(
        "--url",
        default=os.getenv("API_BASE_URL"),
        help="URL pública del servicio (por defecto API_BASE_URL)",
    )
    parser.add_argument("--list", action="store_true", help="Solo listar webhooks existentes")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    base_url = args.url
    if not base_url and not args.list:
        base_url = input("Ingresa la URL base de tu servicio (ej: https://tu-servidor.com): ").strip()
    asyncio.run(main(base_url or "", list_only=args.list))
