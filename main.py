"""Command line entrypoint for the wardrobe client."""

from __future__ import annotations

import argparse
from typing import Any, Dict, List, Optional

from client_app.app import WardrobeClientApp
from client_app.config import ClientConfig
from memory.credential_store import InMemoryStorage
from tools.backend import InMemoryBackendConnection

DEMO_ITEMS: List[Dict[str, Any]] = [
    {"_id": "item-1", "name": "Navy blazer", "category": "outerwear", "price": "89.90", "createTime": "2024-03-01T09:00:00Z"},
    {"_id": "item-2", "name": "White tee", "category": "top", "createTime": "2024-03-02T09:00:00Z"},
    {"_id": "item-3", "name": "Grey chinos", "category": "bottom", "price": "45.00", "createTime": "2024-03-03T09:00:00Z"},
]
DEMO_OUTFITS: List[Dict[str, Any]] = [
    {"_id": "outfit-1", "items": [{"itemId": "item-1", "slot": "outer"}, {"itemId": "item-2", "slot": "top"}]},
    {"_id": "outfit-2", "items": [{"itemId": "item-2", "slot": "top"}, {"itemId": "item-3", "slot": "bottom"}]},
]


def build_offline_connection(config: ClientConfig) -> InMemoryBackendConnection:
    """Seed an in-memory backend with demo data and a login handler."""

    connection = InMemoryBackendConnection()
    connection.seed(config.item_collection, DEMO_ITEMS)
    connection.seed(config.outfit_collection, DEMO_OUTFITS)
    connection.register_function(
        config.auth_function,
        lambda payload: {"code": 0, "token": "offline-token", "userInfo": {"id": "offline-user", "displayName": "Offline"}},
    )
    connection.register_function("quickstartFunctions", lambda payload: {"success": True})
    return connection


def build_app(offline: bool) -> WardrobeClientApp:
    config = ClientConfig.from_env()
    if offline:
        return WardrobeClientApp(config, connection=build_offline_connection(config), storage=InMemoryStorage())
    return WardrobeClientApp(config)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Wardrobe catalog client")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run against an in-memory backend seeded with demo data.",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("items", help="List wardrobe items, newest first.")
    delete = commands.add_parser("delete", help="Delete an item and fix up outfits using it.")
    delete.add_argument("item_id", help="Identifier of the item to delete.")
    args = parser.parse_args(argv)

    app = build_app(args.offline)
    if not app.initialize():
        return 1
    app.verify_environment()

    if args.command == "items":
        for item in app.refresh_items():
            print(f"{item.item_id}\t{item.name}\t{item.category}\t{item.price}")
        return 0

    result = app.delete_item(args.item_id)
    print(f"Deletion {result.status}")
    return 0 if result.ok or result.status == "cancelled" else 1


if __name__ == "__main__":
    raise SystemExit(main())
