#!/usr/bin/env python3
"""
Seed the default system dictionaries.

Inserts lead sources, lead statuses, tour types, client categories and
currencies together with their type configuration. Existing items (same
type and value) are left untouched, so the script can be re-run after
adding new defaults.

Usage:
  python scripts/seed_dictionaries.py [--dry-run]
"""
from __future__ import annotations

import argparse
import logging
import sys
from contextlib import suppress
from typing import Dict, List, Tuple

from dotenv import load_dotenv

load_dotenv()

from tourcrm.db import database, schemas  # noqa: E402
from tourcrm.db.repositories import dictionaries as dictionary_repo  # noqa: E402


logger = logging.getLogger("tourcrm.scripts.seed_dictionaries")


# type -> (display name, is_multiple, [(value, label), ...])
DEFAULT_DICTIONARIES: Dict[str, Tuple[str, bool, List[Tuple[str, str]]]] = {
    "lead_source": (
        "Источник лида",
        False,
        [
            ("manual", "Вручную"),
            ("form", "Веб-форма"),
            ("booking", "Бронирование"),
            ("import", "Импорт"),
            ("other", "Другое"),
        ],
    ),
    "lead_status": (
        "Статус лида",
        False,
        [
            ("new", "Новый"),
            ("contacted", "Связались"),
            ("qualified", "Квалифицирован"),
            ("won", "Выигран"),
            ("lost", "Потерян"),
        ],
    ),
    "tour_type": (
        "Тип тура",
        False,
        [
            ("group", "Групповой"),
            ("individual", "Индивидуальный"),
            ("excursion", "Экскурсионный"),
            ("adventure", "Приключенческий"),
            ("cultural", "Культурный"),
            ("other", "Другое"),
        ],
    ),
    "client_category": (
        "Категория клиента",
        True,
        [
            ("new", "Новый клиент"),
            ("regular", "Постоянный клиент"),
            ("vip", "VIP"),
            ("corporate", "Корпоративный"),
        ],
    ),
    "currency": (
        "Валюта",
        False,
        [
            ("RUB", "Российский рубль"),
            ("CNY", "Китайский юань"),
            ("USD", "Доллар США"),
            ("EUR", "Евро"),
        ],
    ),
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed default system dictionaries")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be inserted without writing",
    )
    return parser.parse_args(argv)


def seed(session, dry_run: bool = False) -> int:
    """Insert missing defaults; returns the number of items created."""
    created = 0
    for dict_type, (display_name, is_multiple, items) in DEFAULT_DICTIONARIES.items():
        if not dry_run and dictionary_repo.get_type_config(session, dict_type) is None:
            dictionary_repo.upsert_type_config(
                session,
                dict_type,
                schemas.DictionaryTypeConfigUpsert(display_name=display_name, is_multiple=is_multiple),
            )
        for order, (value, label) in enumerate(items):
            if dictionary_repo.get_item_by_value(session, type=dict_type, value=value) is not None:
                continue
            created += 1
            if dry_run:
                continue
            dictionary_repo.create_item(
                session,
                schemas.DictionaryItemCreate(type=dict_type, value=value, label=label, sort_order=order * 10),
            )
    return created


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    session = database.SessionLocal()
    try:
        created = seed(session, dry_run=args.dry_run)
    finally:
        with suppress(Exception):
            session.close()
    if args.dry_run:
        print(f"{created} dictionary item(s) would be created; no changes made.")
    else:
        print(f"Created {created} dictionary item(s).")
        logger.info("Dictionary seed finished", extra={"created": created})
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
