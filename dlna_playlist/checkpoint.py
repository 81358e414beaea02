"""
Resume checkpoint: the id of the item being played, kept in a text file.

The file holds a single value. It is rewritten before every playback
attempt and emptied once a playlist has been played to the end. There is no
locking; one orchestrator per checkpoint file.
"""

import logging
import os
import tempfile
from typing import Optional

logger = logging.getLogger(__name__)


class CheckpointStore:
    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def read(self) -> Optional[str]:
        """Return the stored item id, or None when the file is missing or empty."""
        try:
            with open(self.path, encoding="utf-8") as f:
                value = f.read().strip()
        except FileNotFoundError:
            return None
        return value or None

    def write(self, item_id: str) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".checkpoint-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(f"{item_id}\n" if item_id else "")
            os.replace(tmp_path, self.path)
        except OSError:
            os.unlink(tmp_path)
            raise
        logger.debug("Checkpoint %s set to %r", self.path, item_id)

    def clear(self) -> None:
        self.write("")
