"""Shared pytest fixtures for the MenuPal test suite.

Provides:
- anyio_backend: run async tests on asyncio only
- menu_document / envelope_bytes: a well-formed upstream response
- make_record: factory for TranslationRecord instances
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from src.models.menu import MenuItem
from src.models.translation import ImageRef, TranslationRecord


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def menu_document() -> dict:
    """Inner JSON document as the analysis service would embed it."""
    return {
        "categories": [
            {
                "original_name": "面",
                "translated_name": "Noodles",
                "items": [
                    {
                        "original_name": "牛肉面",
                        "translated_name": "Beef Noodle Soup",
                        "price": 28,
                    },
                    {
                        "original_name": "炸酱面",
                        "translated_name": "Noodles with Soybean Paste",
                    },
                ],
            },
            {
                "original_name": "饮料",
                "translated_name": "Drinks",
                "items": [
                    {
                        "original_name": "豆浆",
                        "translated_name": "Soy Milk",
                        "price": 5,
                    },
                ],
            },
        ],
    }


def _wrap_envelope(inner: str) -> bytes:
    return json.dumps({"raw_response": inner}, ensure_ascii=False).encode("utf-8")


@pytest.fixture
def wrap_envelope():
    """Encode a string as the ``raw_response`` field of an envelope."""
    return _wrap_envelope


@pytest.fixture
def envelope_bytes(menu_document: dict) -> bytes:
    inner = "```json\n" + json.dumps(menu_document, ensure_ascii=False) + "\n```"
    return _wrap_envelope(inner)


@pytest.fixture
def make_record():
    """Factory building records with distinct, increasing timestamps."""
    base = datetime(2026, 10, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

    def _make(
        *,
        title: str = "Noodles",
        offset_minutes: int = 0,
        items: list[MenuItem] | None = None,
        assets: tuple[str, ...] = ("main_1.jpg", "additional_0_1.jpg"),
    ) -> TranslationRecord:
        if items is None:
            items = [
                MenuItem(
                    id="面_牛肉面",
                    original_name="牛肉面",
                    translated_name="Beef Noodle Soup",
                    price=28,
                    category="Noodles",
                ),
                MenuItem(
                    id="面_炸酱面",
                    original_name="炸酱面",
                    translated_name="Noodles with Soybean Paste",
                    price=None,
                    category="Noodles",
                ),
            ]
        image_set = []
        if assets:
            image_set.append(
                ImageRef(
                    primary_asset_name=assets[0],
                    menu_items=items,
                    additional_asset_names=list(assets[1:]),
                )
            )
        return TranslationRecord(
            title=title,
            created_at=base + timedelta(minutes=offset_minutes),
            image_set=image_set,
        )

    return _make
