"""
Object Stores

Where encoded payloads go when a caller needs a locator instead of an
in-memory buffer. Stores accept bytes plus a MIME type and hand back a
locator that fetch_bytes() can resolve.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from .errors import PayloadFetchError
from .locators import BLOB_PREFIX

logger = logging.getLogger(__name__)

_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png"}


class ObjectStore(ABC):
    """
    Abstract base class for payload stores.

    Subclasses must implement:
    - upload(): Store bytes and return a locator
    """

    @abstractmethod
    def upload(self, data: bytes, mime: str) -> str:
        """
        Store an encoded payload.

        Args:
            data: Encoded image bytes
            mime: MIME type of the bytes

        Returns:
            Locator resolvable to the stored bytes
        """
        pass

    def release(self, locator: str) -> None:
        """Drop a locator this store issued. Durable stores keep the object."""


class TransientObjectStore(ObjectStore):
    """
    In-memory store issuing blob: locators for internal hand-offs.

    Every locator must be released once superseded; entries are never
    expired automatically.

    Example:
        store = TransientObjectStore()
        locator = store.upload(data, "image/png")
        try:
            prepared = prepare_image(locator, transient_store=store)
        finally:
            store.release(locator)
    """

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str]] = {}

    def upload(self, data: bytes, mime: str) -> str:
        locator = f"{BLOB_PREFIX}{uuid.uuid4()}"
        self._objects[locator] = (bytes(data), mime)
        return locator

    def resolve(self, locator: str) -> tuple[bytes, str]:
        try:
            return self._objects[locator]
        except KeyError:
            raise PayloadFetchError(f"Unknown or revoked locator: {locator}") from None

    def release(self, locator: str) -> None:
        if self._objects.pop(locator, None) is not None:
            logger.debug("Revoked %s", locator)

    def __contains__(self, locator: str) -> bool:
        return locator in self._objects

    def __len__(self) -> int:
        return len(self._objects)


class LocalObjectStore(ObjectStore):
    """
    Durable store writing payloads into a directory.

    Returns file:// locators, the local stand-in for a public bucket URL.
    """

    def __init__(self, root: Path, prefix: str = "analysis_uploads"):
        """
        Args:
            root: Directory to write payloads into (created if missing)
            prefix: Sub-directory for this kind of upload
        """
        self.root = Path(root) / prefix
        self.root.mkdir(parents=True, exist_ok=True)

    def upload(self, data: bytes, mime: str) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = self.root / f"{timestamp}_{uuid.uuid4().hex[:8]}{_EXTENSIONS.get(mime, '.bin')}"
        path.write_bytes(data)
        logger.info("Uploaded %d bytes to %s", len(data), path)
        return path.resolve().as_uri()

