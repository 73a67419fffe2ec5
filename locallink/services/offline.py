"""
Offline snapshot: a pre-computed, pre-scored catalog read from disk.

Layout of OFFLINE_DATA_DIR:
  businesses.json   JSON array of canonical businesses (camelCase)
  metadata.json     optional, free-form sync information
  images/           optional, files referenced by a business's localImage
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from locallink.schemas.business import Business

logger = logging.getLogger(__name__)

BUSINESSES_FILE = "businesses.json"
METADATA_FILE = "metadata.json"
IMAGES_DIR = "images"


class OfflineSnapshot:
    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.businesses: list[Business] = []
        self.metadata: Optional[dict[str, Any]] = None

    @property
    def available(self) -> bool:
        return bool(self.businesses)

    @property
    def images_dir(self) -> Path:
        return self.data_dir / IMAGES_DIR

    def load(self) -> "OfflineSnapshot":
        """Read the snapshot files; missing or unreadable files leave it empty."""
        businesses_path = self.data_dir / BUSINESSES_FILE
        if businesses_path.is_file():
            try:
                raw = json.loads(businesses_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.error("[Offline] could not read %s: %s", businesses_path, exc)
                raw = []
            self.businesses = self._parse(raw if isinstance(raw, list) else [])
            logger.info("[Offline] loaded %d businesses from %s", len(self.businesses), businesses_path)

        metadata_path = self.data_dir / METADATA_FILE
        if metadata_path.is_file():
            try:
                self.metadata = json.loads(metadata_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("[Offline] could not read %s: %s", metadata_path, exc)
        return self

    @staticmethod
    def _parse(items: list) -> list[Business]:
        businesses: list[Business] = []
        for item in items:
            try:
                business = Business.model_validate(item)
            except ValidationError as exc:
                logger.debug("[Offline] skipping invalid business: %s", exc)
                continue
            # Snapshot aggregates are stale; the overlay recomputes them
            businesses.append(business.model_copy(update={"source": "offline"}).without_overlay())
        return businesses
