"""Whole-file JSON checkpoints of the accumulated catalog."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .errors import CheckpointNotFound
from .models import Catalog

logger = logging.getLogger("catalog_crawler.checkpoint")


class CheckpointStore:
    """Persists the catalog to ``path`` and reads it back on recovery.

    Every write replaces the whole file. The payload goes to a sibling
    temporary file first and is then renamed over the target, so a reader
    sees either the previous snapshot or the new one.
    """

    def __init__(self, path: Path, progress_path: Optional[Path] = None) -> None:
        self.path = Path(path)
        self.progress_path = Path(progress_path) if progress_path else None

    def append_page(self, catalog: Catalog) -> Path:
        """Write every page of ``catalog`` in page order. Raises ``OSError``."""
        payload = catalog.to_json()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except OSError:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            raise
        logger.debug("Checkpoint written to %s (%d pages)", self.path, len(catalog))
        return self.path

    def _read(self, path: Path) -> Catalog:
        return Catalog.from_json(path.read_text(encoding="utf-8"))

    def checkpoint_is_valid(self) -> bool:
        """True when the checkpoint file itself exists and parses."""
        try:
            self._read(self.path)
        except (OSError, ValueError, KeyError, TypeError):
            return False
        return True

    def load_latest(self) -> Catalog:
        """Return the checkpoint, falling back to the progress file."""
        candidates = [self.path]
        if self.progress_path is not None:
            candidates.append(self.progress_path)
        problems = []
        for candidate in candidates:
            try:
                catalog = self._read(candidate)
            except FileNotFoundError:
                problems.append(f"{candidate}: missing")
                continue
            except (OSError, ValueError, KeyError, TypeError) as exc:
                logger.warning("Could not read %s: %s", candidate, exc)
                problems.append(f"{candidate}: {exc}")
                continue
            logger.info("Loaded %d pages from %s", len(catalog), candidate)
            return catalog
        raise CheckpointNotFound("No usable checkpoint (" + "; ".join(problems) + ")")
