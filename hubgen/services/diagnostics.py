"""Diagnostic log — append-only JSON lines for operators, never read back by the engine."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class JsonlDiagnosticLog:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def append(self, entry: dict) -> None:
        """Append one entry. Best-effort: a write failure is logged, not raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            logger.warning("Could not write diagnostic entry to %s: %s", self.path, exc)
