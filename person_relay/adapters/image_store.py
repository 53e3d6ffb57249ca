import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO


logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when an uploaded image cannot be written to disk."""


class ImageStore:
    """Own the on-disk lifecycle of uploaded images under a single directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, filename: str, source: BinaryIO) -> str:
        """Copy ``source`` into the store and return the stored file name."""

        safe_name = Path(filename).name or "image"
        stored_name = f"upload-{uuid.uuid4().hex[:8]}-{safe_name}"
        target = self.root / stored_name
        try:
            with target.open("wb") as buffer:
                shutil.copyfileobj(source, buffer)
        except OSError as exc:
            self._unlink_quietly(target)
            raise StorageError(f"Unable to save {stored_name}: {exc}") from exc
        logger.debug("Stored upload %s", target)
        return stored_name

    def path(self, stored_name: str) -> Path:
        return self.root / Path(stored_name).name

    def exists(self, stored_name: str) -> bool:
        return self.path(stored_name).is_file()

    def delete(self, stored_name: str) -> bool:
        """Remove a stored image; failures are logged and reported as ``False``."""

        target = self.path(stored_name)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.warning("Image %s was already removed", target)
            return False
        except OSError as exc:
            logger.warning("Unable to remove image %s: %s", target, exc)
            return False
        logger.debug("Removed image %s", target)
        return True

    def _unlink_quietly(self, target: Path) -> None:
        try:
            target.unlink()
        except OSError:
            pass
