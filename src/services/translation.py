"""Translation workflow: photos in, persisted TranslationRecord out.

Orchestrates the collaborators in the order the record store requires:
fetch the analysis, parse it, save the photo assets, then save the record.
Assets must exist before the record referencing them is committed; a crash
in between leaves unreferenced image files, which is tolerated.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from src.clients.menu_analysis import MenuAnalysisClient
from src.models.common import new_uuid7, utc_now
from src.models.menu import MenuItem
from src.models.translation import ImageRef, TranslationRecord
from src.models.user_settings import Language
from src.parsing.response_parser import parse_menu_response
from src.storage.assets import LocalAssetStore
from src.storage.errors import StoreError
from src.storage.record_store import RecordStore

logger = logging.getLogger(__name__)

UNTITLED_MENU = "Untitled menu"


def generate_menu_title(items: Sequence[MenuItem]) -> str:
    """Single category -> its name; otherwise the first dish's original name."""
    categories = {item.category for item in items}
    if len(categories) == 1:
        return next(iter(categories))
    if items:
        return items[0].original_name
    return UNTITLED_MENU


def build_record(
    menu_items: Sequence[MenuItem],
    asset_names: Sequence[str],
    *,
    title: str | None = None,
    record_id: UUID | None = None,
    created_at: datetime | None = None,
) -> TranslationRecord:
    """Assemble a record from parsed items and already-saved asset names.

    The first asset is the primary photo and the rest are additional pages,
    all sharing one ImageRef. No assets means an empty image set.
    """
    image_set: list[ImageRef] = []
    if asset_names:
        image_set.append(
            ImageRef(
                primary_asset_name=asset_names[0],
                menu_items=list(menu_items),
                additional_asset_names=list(asset_names[1:]),
            )
        )
    return TranslationRecord(
        id=record_id or new_uuid7(),
        title=title if title is not None else generate_menu_title(menu_items),
        created_at=created_at or utc_now(),
        image_set=image_set,
    )


class TranslationService:
    """Caller-side aggregation over the analysis client and the stores."""

    def __init__(
        self,
        *,
        client: MenuAnalysisClient,
        asset_store: LocalAssetStore,
        record_store: RecordStore,
    ) -> None:
        self._client = client
        self._assets = asset_store
        self._records = record_store

    async def translate(
        self,
        images: Sequence[bytes],
        target_language: Language | str,
    ) -> TranslationRecord:
        """Analyze ``images`` and persist the resulting translation.

        Parse, upstream and store errors propagate unchanged.
        """
        raw = await self._client.upload_images(list(images), str(target_language))
        menu = parse_menu_response(raw)

        asset_names = await asyncio.to_thread(self._save_assets, images)
        record = build_record(menu.menu_items(), asset_names)
        try:
            await asyncio.to_thread(self._records.save, record)
        except StoreError:
            await asyncio.to_thread(self._discard_assets, asset_names)
            raise

        logger.info(
            "Translation %s saved: %r, %d items from %d image(s)",
            record.id,
            record.title,
            len(record.menu_items),
            len(asset_names),
        )
        return record

    def history(self) -> list[TranslationRecord]:
        return self._records.list()

    def delete(self, record_id: UUID | str) -> None:
        """Delete a record, then the photos it referenced."""
        record = self._records.get(record_id)
        self._records.delete(record_id)
        if record is not None:
            self._discard_assets(record.asset_names)

    def clear_history(self) -> None:
        records = self._records.list()
        self._records.clear_all()
        for record in records:
            self._discard_assets(record.asset_names)

    def _save_assets(self, images: Sequence[bytes]) -> list[str]:
        names = []
        for index, image in enumerate(images):
            hint = "main" if index == 0 else f"additional_{index - 1}"
            names.append(self._assets.save(image, hint))
        return names

    def _discard_assets(self, asset_names: Sequence[str]) -> None:
        for name in asset_names:
            try:
                self._assets.delete(name)
            except (OSError, ValueError) as exc:
                logger.warning("Could not delete asset %s: %s", name, exc)
