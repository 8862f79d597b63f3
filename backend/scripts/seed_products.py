#!/usr/bin/env python3
"""
Seed the product catalog from a JSON file.

The file is either a list of product entries or an object with an
"items" list. Each entry needs an id (``id``, ``productId`` or ``sku``)
and accepts name, description, price, stock (or stockQuantity) and image.
Without --file, a small demo catalog is loaded.

Usage:
    python scripts/seed_products.py --file catalog.json
"""
import argparse
import json
import logging
import os
import sys
from decimal import Decimal, InvalidOperation

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from shopcore.db import SessionLocal, init_db
from shopcore.repositories.product_repo import ProductRepository
from shopcore.utils.logging_config import setup_logging

log = logging.getLogger("shopcore.seed")

DEMO_PRODUCTS = [
    {"id": "P1", "name": "Tea 100g", "price": "10.00", "stock": 5, "description": "Loose leaf tea"},
    {"id": "P2", "name": "Coffee 200g", "price": "6.00", "stock": 1, "description": "Ground coffee"},
    {"id": "P3", "name": "Chocolate bar", "price": "2.50", "stock": 50},
    {"id": "P4", "name": "Honey jar", "price": "7.25", "stock": 12},
]


def _normalize_entry(entry):
    """Return a dict with keys: id, name, price, stock_quantity, description, image"""
    product_id = entry.get("id") or entry.get("productId") or entry.get("sku")
    try:
        price = Decimal(str(entry.get("price", "0")))
    except InvalidOperation:
        price = Decimal("0")
    try:
        stock = int(entry.get("stockQuantity", entry.get("stock", 0)) or 0)
    except (TypeError, ValueError):
        stock = 0
    return {
        "product_id": str(product_id) if product_id is not None else None,
        "name": entry.get("name") or entry.get("title") or "",
        "price": max(price, Decimal("0")),
        "stock_quantity": max(stock, 0),
        "description": entry.get("description") or "",
        "image": entry.get("image"),
    }


def load_entries(path):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        return data.get("items") or list(data.values())
    if isinstance(data, list):
        return data
    return []


def seed(entries) -> int:
    db = SessionLocal()
    repo = ProductRepository(db)
    seeded = 0
    try:
        for entry in map(_normalize_entry, entries):
            if not entry["product_id"]:
                log.warning("skipping entry without id: %r", entry)
                continue
            repo.create_or_update(**entry)
            seeded += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    log.info("seeded products: %s", seeded)
    return seeded


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=None, help="Path to product json")
    parser.add_argument("--reset", action="store_true", help="drop and recreate tables first")
    args = parser.parse_args()
    setup_logging("INFO")
    if args.file and not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    init_db(reset=args.reset)
    seed(load_entries(args.file) if args.file else DEMO_PRODUCTS)
