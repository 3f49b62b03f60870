"""Translation record models.

A TranslationRecord is one saved translation session: the image assets that
were uploaded, the menu items derived from them, a title and a timestamp.
Records are immutable once built; the record store owns them after save.
"""

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field, RootModel, field_validator

from src.models.common import MenuPalBase, UTCTimestamp, UUIDv7, new_uuid7, utc_now
from src.models.menu import MenuItem


class ImageRef(MenuPalBase):
    """One uploaded photo set: a primary asset plus any additional pages."""

    model_config = ConfigDict(frozen=True)

    primary_asset_name: str = Field(..., min_length=1)
    menu_items: list[MenuItem] = Field(default_factory=list)
    additional_asset_names: list[str] = Field(default_factory=list)

    @property
    def asset_names(self) -> list[str]:
        return [self.primary_asset_name, *self.additional_asset_names]


class TranslationRecord(MenuPalBase):
    """A persisted translation session."""

    model_config = ConfigDict(frozen=True)

    id: UUIDv7 = Field(default_factory=new_uuid7)
    title: str
    created_at: UTCTimestamp = Field(default_factory=utc_now)
    image_set: list[ImageRef] = Field(default_factory=list)

    @field_validator("created_at")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            msg = "created_at must be timezone-aware."
            raise ValueError(msg)
        return value

    @property
    def menu_items(self) -> list[MenuItem]:
        """Items of every image in ``image_set`` order."""
        return [item for image in self.image_set for item in image.menu_items]

    @property
    def asset_names(self) -> list[str]:
        return [name for image in self.image_set for name in image.asset_names]


class IndexEntry(MenuPalBase):
    """One row of the record index."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    created_at: UTCTimestamp


class RecordIndex(RootModel[dict[str, UTCTimestamp]]):
    """The index document: record id -> creation timestamp."""

    root: dict[str, UTCTimestamp] = Field(default_factory=dict)

    @field_validator("root")
    @classmethod
    def _require_timezones(cls, value: dict[str, datetime]) -> dict[str, datetime]:
        for record_id, created_at in value.items():
            if created_at.tzinfo is None:
                msg = f"Index entry {record_id} has a timestamp without a timezone."
                raise ValueError(msg)
        return value

    def entries(self) -> list[IndexEntry]:
        """Entries ordered most recent first."""
        rows = [
            IndexEntry(record_id=record_id, created_at=created_at)
            for record_id, created_at in self.root.items()
        ]
        return sorted(rows, key=lambda e: e.created_at, reverse=True)

    def with_entry(self, record_id: UUID | str, created_at: datetime) -> "RecordIndex":
        updated = dict(self.root)
        updated[str(record_id)] = created_at
        return RecordIndex(updated)

    def without(self, record_id: UUID | str) -> "RecordIndex":
        updated = dict(self.root)
        updated.pop(str(record_id), None)
        return RecordIndex(updated)

    def __contains__(self, record_id: object) -> bool:
        return str(record_id) in self.root

    def __len__(self) -> int:
        return len(self.root)
