"""User preference models: target language, display currency, last location."""

from enum import StrEnum

from pydantic import Field

from src.models.common import MenuPalBase


class Language(StrEnum):
    """Translation target languages (ISO 639-1 codes sent upstream)."""

    CHINESE = "zh"
    ENGLISH = "en"
    JAPANESE = "ja"
    KOREAN = "ko"

    @property
    def display_name(self) -> str:
        return _LANGUAGE_NAMES[self]


_LANGUAGE_NAMES: dict[Language, str] = {
    Language.CHINESE: "中文",
    Language.ENGLISH: "English",
    Language.JAPANESE: "日本語",
    Language.KOREAN: "한국어",
}


class Currency(StrEnum):
    """Display currencies for menu prices."""

    CNY = "CNY"
    USD = "USD"
    JPY = "JPY"
    KRW = "KRW"
    EUR = "EUR"

    @property
    def symbol(self) -> str:
        return _CURRENCY_SYMBOLS[self]

    @property
    def display_name(self) -> str:
        return f"{_CURRENCY_NAMES[self]} ({self.value})"


_CURRENCY_SYMBOLS: dict[Currency, str] = {
    Currency.CNY: "¥",
    Currency.USD: "$",
    Currency.JPY: "¥",
    Currency.KRW: "₩",
    Currency.EUR: "€",
}

_CURRENCY_NAMES: dict[Currency, str] = {
    Currency.CNY: "Chinese Yuan",
    Currency.USD: "US Dollar",
    Currency.JPY: "Japanese Yen",
    Currency.KRW: "South Korean Won",
    Currency.EUR: "Euro",
}


class Coordinate(MenuPalBase):
    """WGS84 position."""

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class UserSettings(MenuPalBase):
    """Flat preference blob persisted by the preferences store."""

    preferred_language: Language = Language.CHINESE
    currency: Currency = Currency.CNY
    location: Coordinate | None = None

    @property
    def location_display(self) -> str:
        if self.location is None:
            return "Unknown"
        return f"{self.location.latitude:.4f}, {self.location.longitude:.4f}"
