"""Menu models: the upstream wire schema and the parsed domain menu.

The wire models mirror the JSON document the menu-analysis service embeds in
its natural-language response. They validate in strict mode so a string price
or a scalar ``items`` field is reported instead of being coerced.

The domain models are what the rest of the system consumes: categories in
source order, each item carrying a deterministic id.
"""

from pydantic import ConfigDict, Field

from src.models.common import MenuPalBase, NonEmptyStr


# ---------------------------------------------------------------------------
# Upstream wire schema
# ---------------------------------------------------------------------------


class ResponseEnvelope(MenuPalBase):
    """Outer response object; ``raw_response`` holds the real document."""

    model_config = ConfigDict(strict=True)

    raw_response: str


class ItemPayload(MenuPalBase):
    """A dish as emitted by the upstream service."""

    model_config = ConfigDict(strict=True)

    original_name: str
    translated_name: str
    price: int | None = None


class CategoryPayload(MenuPalBase):
    """A menu section as emitted by the upstream service."""

    model_config = ConfigDict(strict=True)

    original_name: str
    translated_name: str
    items: list[ItemPayload]


class MenuPayload(MenuPalBase):
    """Top-level upstream document."""

    model_config = ConfigDict(strict=True)

    categories: list[CategoryPayload]


# ---------------------------------------------------------------------------
# Domain menu
# ---------------------------------------------------------------------------


def menu_item_id(category_original_name: str, item_original_name: str) -> str:
    """Stable item identity derived from the source text.

    Not globally unique: the same dish listed twice under one category name
    yields the same id.
    """
    return f"{category_original_name}_{item_original_name}"


class MenuItem(MenuPalBase):
    """A single translated dish.

    ``category`` holds the translated name of the owning category.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    original_name: str
    translated_name: str
    price: int | None = None
    category: str


class Category(MenuPalBase):
    """A menu section with its dishes in source order."""

    model_config = ConfigDict(frozen=True)

    original_name: str
    translated_name: NonEmptyStr
    items: list[MenuItem] = Field(default_factory=list)


class Menu(MenuPalBase):
    """A successfully parsed menu. Always has at least one category."""

    model_config = ConfigDict(frozen=True)

    categories: list[Category] = Field(..., min_length=1)

    def menu_items(self) -> list[MenuItem]:
        """All items flattened in category order, then item order."""
        return [item for category in self.categories for item in category.items]
