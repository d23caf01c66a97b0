"""Temporary staging of decoded images

A staged file is removed when its scope ends, whatever ended it. Removal is
also registered with a finalizer the moment the file is created, so a handle
that escapes its scope is still cleaned up once it is garbage collected.
"""

import logging
import os
import tempfile
import weakref

from badgepress.badges.errors import StagingError
from badgepress.config import settings

logger = logging.getLogger(__name__)


def _remove_file(path: str) -> None:
    try:
        os.remove(path)
        logger.debug("Removed staged file %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Could not remove staged file %s: %s", path, e)


class StagedFile:
    """Handle on one staged file.

    `claim()` hands the path to the next stage exactly once. `release()`
    deletes the file and may be called any number of times.
    """

    def __init__(self, path: str, name: str, media_type: str, size: int):
        self.path = path
        self.name = name
        self.media_type = media_type
        self.size = size
        self._claimed = False
        self._finalizer = weakref.finalize(self, _remove_file, path)

    def claim(self) -> str:
        """Return the staged path for ingestion; a second claim is an error"""
        if self._claimed:
            raise StagingError("Staged file has already been used.")
        if not self._finalizer.alive:
            raise StagingError("Staged file has already been released.")
        self._claimed = True
        return self.path

    def release(self) -> None:
        """Delete the staged file (no-op when already deleted)"""
        self._finalizer()

    @property
    def released(self) -> bool:
        return not self._finalizer.alive

    def __enter__(self) -> "StagedFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"<StagedFile(name='{self.name}', size={self.size}, released={self.released})>"


def stage_bytes(
    data: bytes,
    suffix: str = ".png",
    media_type: str = "",
    directory: str | None = None,
    prefix: str | None = None,
) -> StagedFile:
    """Write bytes to a uniquely named temporary file.

    The returned handle owns the file; use it as a context manager (or call
    `release()`) to delete it.

    Raises:
        StagingError: the file could not be created or written
    """
    directory = directory if directory is not None else settings.STAGING_DIR
    prefix = prefix if prefix is not None else settings.STAGING_PREFIX

    try:
        fd, path = tempfile.mkstemp(suffix=suffix, prefix=prefix, dir=directory)
    except OSError as e:
        logger.error("Could not allocate staging file: %s", e)
        raise StagingError("Error saving the badge designer image.") from e

    # handle exists before the write so a failed write is still cleaned up
    staged = StagedFile(
        path=path,
        name=os.path.basename(path),
        media_type=media_type,
        size=len(data),
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError as e:
        staged.release()
        logger.error("Could not write staging file %s: %s", path, e)
        raise StagingError("Error saving the badge designer image.") from e

    logger.debug("Staged %d bytes at %s", len(data), path)
    return staged
