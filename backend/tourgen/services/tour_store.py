"""Finished tours: JSON files for the CLI, an in-memory gallery for the web UI."""

from __future__ import annotations

import json
import logging
import os
import re
import threading

from tourgen.schemas.job import TourResult

logger = logging.getLogger(__name__)


def tour_filename(display_name: str) -> str:
    """``123 Main St`` → ``123-Main-St.json``."""
    return re.sub(r"[^a-z0-9]", "-", display_name, flags=re.IGNORECASE) + ".json"


def save_tour(result: TourResult, tours_dir: str) -> str:
    """Write the result record to ``tours_dir`` and return the file path."""
    os.makedirs(tours_dir, exist_ok=True)
    path = os.path.join(tours_dir, tour_filename(result.display_name))
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result.to_record(), f, indent=2, ensure_ascii=False)
    logger.info("Tour saved: %s", path)
    return path


class TourGallery:
    """Append-only list of tours finished during this process, newest first."""

    def __init__(self) -> None:
        self._items: list[TourResult] = []
        self._lock = threading.Lock()

    def add_if_absent(self, result: TourResult) -> TourResult:
        """Add ``result`` unless its operation is already listed; return the stored tour."""
        with self._lock:
            for t in self._items:
                if result.operation_id and t.operation_id == result.operation_id:
                    return t
            self._items.insert(0, result)
            return result

    def find(self, operation_id: str) -> TourResult | None:
        with self._lock:
            return next((t for t in self._items if t.operation_id == operation_id), None)

    def list(self) -> list[TourResult]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


_gallery = TourGallery()


def get_gallery() -> TourGallery:
    return _gallery
