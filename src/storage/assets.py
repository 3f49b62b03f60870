"""Local image asset storage.

Menu photos are stored as opaque blobs under ``<root>/menu_images/``. Records
reference them only by the generated asset name; no consistency guarantees
beyond single-file writes.
"""

import logging
import re
from pathlib import Path

from src.models.common import new_uuid7
from src.storage._files import atomic_write_bytes

logger = logging.getLogger(__name__)

IMAGES_DIRNAME = "menu_images"

_SAFE_HINT_RE = re.compile(r"[^A-Za-z0-9._-]")


class LocalAssetStore:
    """Filesystem-backed image blob storage."""

    def __init__(self, root: str | Path, extension: str = "jpg") -> None:
        self._dir = Path(root) / IMAGES_DIRNAME
        self._extension = extension.lstrip(".")

    @property
    def directory(self) -> Path:
        return self._dir

    def _path_for(self, asset_name: str) -> Path:
        if not asset_name or "/" in asset_name or "\\" in asset_name or asset_name in {".", ".."}:
            msg = f"Invalid asset name: {asset_name!r}"
            raise ValueError(msg)
        return self._dir / asset_name

    def save(self, content: bytes, name_hint: str) -> str:
        """Store ``content`` and return its generated asset name.

        Raises:
            ValueError: If content is empty.
        """
        if len(content) == 0:
            msg = "Asset content must not be empty."
            raise ValueError(msg)

        safe_hint = _SAFE_HINT_RE.sub("_", name_hint) or "image"
        asset_name = f"{safe_hint}_{new_uuid7()}.{self._extension}"
        atomic_write_bytes(self._path_for(asset_name), content)
        logger.debug("Stored asset %s (%d bytes)", asset_name, len(content))
        return asset_name

    def load(self, asset_name: str) -> bytes | None:
        """Read an asset, or None if it does not exist."""
        try:
            return self._path_for(asset_name).read_bytes()
        except FileNotFoundError:
            return None

    def delete(self, asset_name: str) -> None:
        """Remove an asset. Missing assets are ignored."""
        self._path_for(asset_name).unlink(missing_ok=True)
