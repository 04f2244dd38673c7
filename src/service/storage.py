from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import joblib

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class ModelStore:
    """Named artifact store backed by one joblib file per name."""

    def __init__(self, artifact_dir: str | Path) -> None:
        self.artifact_dir = Path(artifact_dir)

    def _path(self, name: str) -> Path:
        if not _NAME_RE.match(name):
            raise ValueError(f"Invalid artifact name: {name!r}")
        return self.artifact_dir / f"{name}.joblib"

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def save(self, name: str, payload: dict[str, Any]) -> Path:
        path = self._path(name)
        self.artifact_dir.mkdir(parents=True, exist_ok=True)
        joblib.dump({"name": name, **payload}, path)
        logger.info("Saved model artifact %s to %s", name, path)
        return path

    def load(self, name: str) -> dict[str, Any]:
        path = self._path(name)
        if not path.is_file():
            raise FileNotFoundError(f"No stored model named {name!r}")
        payload = joblib.load(path)
        logger.info("Loaded model artifact %s from %s", name, path)
        return payload

    def list_names(self) -> list[str]:
        if not self.artifact_dir.exists():
            return []
        return sorted(p.stem for p in self.artifact_dir.glob("*.joblib"))
