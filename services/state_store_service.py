"""
State store - saves and restores the stock check session as JSON on disk.

The snapshot format is the SessionSnapshot schema; nothing else reads
the file.
"""

import os
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from config import settings
from exceptions import StateStoreError
from models.reconciliation import SessionSnapshot

logger = structlog.get_logger(__name__)


class StateStore:
    """
    File-backed session snapshot storage.

    Core methods:
    - save: Write the snapshot (temp file, then atomic replace)
    - load: Read the snapshot, None when nothing was saved
    - clear: Delete the saved snapshot
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else Path(settings.state_file)

    def save(self, snapshot: SessionSnapshot) -> None:
        """
        Persist a snapshot.

        Raises:
            StateStoreError: If the file cannot be written
        """
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("state_save_failed", path=str(self.path), error=str(e))
            raise StateStoreError(
                operation="save",
                message=str(e),
                details={"path": str(self.path)}
            )

        logger.debug(
            "state_saved",
            path=str(self.path),
            item_count=len(snapshot.items),
            unexpected_count=len(snapshot.unexpected_scans),
        )

    def load(self) -> Optional[SessionSnapshot]:
        """
        Read the saved snapshot.

        Returns:
            SessionSnapshot, or None if no state has been saved

        Raises:
            StateStoreError: If the file exists but cannot be read or decoded
        """
        if not self.path.exists():
            logger.debug("state_not_found", path=str(self.path))
            return None

        try:
            snapshot = SessionSnapshot.model_validate_json(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            logger.error("state_read_failed", path=str(self.path), error=str(e))
            raise StateStoreError(
                operation="load",
                message=str(e),
                details={"path": str(self.path)}
            )
        except PydanticValidationError as e:
            logger.error("state_invalid", path=str(self.path), error_count=e.error_count())
            raise StateStoreError(
                operation="load",
                message="Saved state is not a valid session snapshot",
                details={"path": str(self.path), "errors": e.error_count()}
            )

        logger.info(
            "state_loaded",
            path=str(self.path),
            item_count=len(snapshot.items),
        )
        return snapshot

    def clear(self) -> bool:
        """
        Delete the saved snapshot.

        Returns:
            True if a file was removed
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StateStoreError(
                operation="clear",
                message=str(e),
                details={"path": str(self.path)}
            )

        logger.info("state_cleared", path=str(self.path))
        return True


# Singleton instance
_state_store: Optional[StateStore] = None


def get_state_store() -> StateStore:
    """Get or create StateStore instance."""
    global _state_store
    if _state_store is None:
        _state_store = StateStore()
    return _state_store
