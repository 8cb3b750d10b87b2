"""
Filesystem access for vault files

Updates go through write_atomic(): the new image goes to a temp file in
the same directory and is swapped in with os.replace(), so a reader (or a
crash) sees either the old vault or the new one, never a mix. The first
image of a new vault goes through write_new(), which links the temp file
into place and fails if the path already exists.

Two processes writing the same vault both produce complete files; the later
rename wins and the earlier write is lost. That is accepted, there is no
cross-process locking.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import IO

from .exceptions import AlreadyExistsError, PersistenceError

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".krab-"
FILE_MODE = 0o600


class VaultFileStorage:
    """Read / atomic-write primitives used by the registry and the vault store."""

    def read(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def new_temp_in(self, directory: Path) -> IO[bytes]:
        # Same directory as the target so os.replace() never crosses filesystems.
        return tempfile.NamedTemporaryFile(
            mode="wb", dir=str(directory), prefix=TEMP_PREFIX, suffix=".tmp", delete=False
        )

    def _stage(self, directory: Path, data: bytes) -> Path:
        # complete, synced, owner-only temp file next to the target
        with self.new_temp_in(directory) as tmpf:
            tmp_path = Path(tmpf.name)
            try:
                tmpf.write(data)
                tmpf.flush()
                os.fsync(tmpf.fileno())
            except OSError:
                tmpf.close()
                _discard(tmp_path)
                raise
        try:
            os.chmod(tmp_path, FILE_MODE)
        except OSError:
            _discard(tmp_path)
            raise
        return tmp_path

    def write_atomic(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path`` all-or-nothing; raise PersistenceError on failure."""
        path = Path(path)
        tmp_path = None
        try:
            tmp_path = self._stage(path.parent, data)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as exc:
            logger.error("atomic write of %s failed: %s", path.name, exc)
            raise PersistenceError(f"could not write vault file {path.name}") from exc
        finally:
            if tmp_path is not None:
                _discard(tmp_path)
        self._fsync_dir(path.parent)

    def write_new(self, path: Path, data: bytes) -> None:
        """
        Like write_atomic(), but never replaces an existing file.

        The staged temp file is hard-linked into place, which fails if
        ``path`` appeared in the meantime (another process registering the
        same user). That case raises AlreadyExistsError.
        """
        path = Path(path)
        try:
            tmp_path = self._stage(path.parent, data)
        except OSError as exc:
            logger.error("write of new vault %s failed: %s", path.name, exc)
            raise PersistenceError(f"could not write vault file {path.name}") from exc
        try:
            os.link(tmp_path, path)
        except FileExistsError as exc:
            raise AlreadyExistsError("a vault for this username already exists") from exc
        except OSError as exc:
            logger.error("write of new vault %s failed: %s", path.name, exc)
            raise PersistenceError(f"could not write vault file {path.name}") from exc
        finally:
            _discard(tmp_path)
        self._fsync_dir(path.parent)

    @staticmethod
    def _fsync_dir(directory: Path) -> None:
        # Makes the rename itself durable; not supported on Windows.
        if os.name != "posix":
            return
        try:
            fd = os.open(str(directory), os.O_RDONLY)
        except OSError as exc:
            logger.warning("could not open %s for fsync: %s", directory, exc)
            return
        try:
            os.fsync(fd)
        except OSError as exc:
            logger.warning("directory fsync failed: %s", exc)
        finally:
            os.close(fd)


def _discard(tmp_path: Path) -> None:
    try:
        tmp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("could not remove temp file %s", tmp_path.name)
