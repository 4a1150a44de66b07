"""
Bundled asset access.

The routing table ships as a static asset next to the service. Handlers only
see the ``AssetStore`` protocol so tests can swap in an in-memory store.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class AssetNotFoundError(FileNotFoundError):
    """Requested asset does not exist in the store."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Asset not found: {path}")
        self.path = path


class AssetStore(Protocol):
    """Read-only access to bundled assets addressed by ``/``-rooted paths."""

    def read_text(self, path: str) -> str:
        ...


class FileAssetStore:
    """Assets stored as files below a root directory."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        candidate = (self._root / path.lstrip("/")).resolve()
        # asset paths must not escape the root
        if not candidate.is_relative_to(self._root):
            raise AssetNotFoundError(path)
        return candidate

    def read_text(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise AssetNotFoundError(path)
        return target.read_text(encoding="utf-8")


class InMemoryAssetStore:
    """Dict-backed asset store for tests and local tooling."""

    def __init__(self, assets: dict[str, str] | None = None) -> None:
        self._assets = dict(assets or {})

    def put(self, path: str, content: str) -> None:
        self._assets[path] = content

    def read_text(self, path: str) -> str:
        try:
            return self._assets[path]
        except KeyError:
            raise AssetNotFoundError(path) from None
