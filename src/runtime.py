"""Process-level wiring.

Builds the stores, the analysis client and the translation service once at
startup. Callers receive these handles explicitly; nothing here is a
module-level singleton.
"""

import logging
from dataclasses import dataclass

from src.clients.menu_analysis import MenuAnalysisClient
from src.config.logging import configure_logging
from src.config.settings import Settings, get_settings
from src.services.translation import TranslationService
from src.storage.assets import LocalAssetStore
from src.storage.preferences import PreferencesStore
from src.storage.record_store import FileRecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Runtime:
    """Handles shared by the presentation layer for the process lifetime."""

    settings: Settings
    records: FileRecordStore
    assets: LocalAssetStore
    preferences: PreferencesStore
    translations: TranslationService | None


def build_runtime(settings: Settings | None = None, *, configure_logs: bool = True) -> Runtime:
    """Create every long-lived handle from ``settings``.

    ``translations`` is None when no upstream URL is configured; history,
    deletion and preferences still work in that case.
    """
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(settings)

    records = FileRecordStore(settings.storage_root)
    assets = LocalAssetStore(settings.storage_root)
    preferences = PreferencesStore(settings.preferences_path)

    translations = None
    if settings.UPSTREAM_URL:
        client = MenuAnalysisClient(
            settings.UPSTREAM_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        )
        translations = TranslationService(
            client=client,
            asset_store=assets,
            record_store=records,
        )
    else:
        logger.info("UPSTREAM_URL not configured; translation disabled")

    logger.info("MenuPal storage root: %s", settings.storage_root)
    return Runtime(
        settings=settings,
        records=records,
        assets=assets,
        preferences=preferences,
        translations=translations,
    )
