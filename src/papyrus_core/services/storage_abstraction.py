"""
Storage abstraction for generated artifacts.

Every artifact gets a fresh ``<prefix>_<uuid4>.<ext>`` filename, so
concurrent writers never collide and no locking is needed.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Dict, Any
import asyncio
import logging
import uuid

from ..core.content_types import GeneratedArtifact

logger = logging.getLogger(__name__)


class ArtifactStorage(ABC):
    """Abstract storage interface for generated artifacts"""

    @abstractmethod
    def new_filename(self, prefix: str, extension: str) -> str:
        """Return a unique filename for a new artifact"""
        pass

    @abstractmethod
    async def save_bytes(
        self,
        data: bytes,
        prefix: str,
        extension: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> GeneratedArtifact:
        """Write bytes under a new unique name and describe the result"""
        pass

    @abstractmethod
    def reserve_path(self, prefix: str, extension: str) -> Path:
        """Return the absolute path a new artifact should be written to"""
        pass

    @abstractmethod
    def describe(self, path: Path, metadata: Optional[Dict[str, Any]] = None) -> GeneratedArtifact:
        """Describe an artifact already written to ``path``"""
        pass


class LocalArtifactStorage(ArtifactStorage):
    """
    Local filesystem storage.

    Files live under ``base_path`` and are served back under ``url_prefix``
    using the same relative layout.
    """

    def __init__(self, base_path: Optional[Path] = None, url_prefix: str = "/generated"):
        self.base_path = Path(base_path or Path("./generated"))
        self.url_prefix = url_prefix.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    def new_filename(self, prefix: str, extension: str) -> str:
        return f"{prefix}_{uuid.uuid4()}.{extension.lstrip('.')}"

    def reserve_path(self, prefix: str, extension: str) -> Path:
        return (self.base_path / self.new_filename(prefix, extension)).absolute()

    async def save_bytes(
        self,
        data: bytes,
        prefix: str,
        extension: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> GeneratedArtifact:
        target_path = self.reserve_path(prefix, extension)

        # Use asyncio to avoid blocking
        await asyncio.to_thread(target_path.write_bytes, data)

        logger.info(f"Artifact written: {target_path}")
        return self.describe(target_path, metadata)

    def describe(self, path: Path, metadata: Optional[Dict[str, Any]] = None) -> GeneratedArtifact:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Artifact not found: {path}")

        relative = path.resolve().relative_to(self.base_path.resolve())
        return GeneratedArtifact(
            filename=path.name,
            path=path,
            url=f"{self.url_prefix}/{relative.as_posix()}",
            # Size is read back from disk, not taken from the in-memory buffer
            size=path.stat().st_size,
            metadata=dict(metadata or {}),
        )
