"""
Atomic file writes and cooperative file locking.

Unlike a best-effort writer these helpers raise on failure: losing a
write of the task file or the sync metadata must reach the caller.
"""

import contextlib
import errno
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

try:  # fcntl is only available on POSIX platforms
    import fcntl  # type: ignore
except ImportError:  # pragma: no cover - Windows fallback
    fcntl = None  # type: ignore


DEFAULT_LOCK_TIMEOUT = 8.0  # seconds
LOCK_SLEEP_INTERVAL = 0.05  # seconds

PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def _lock_file_path(path: Path) -> Path:
    """Return the companion lock file path for the target file."""
    lock_name = f"{path.name}.lock"
    return path.parent / lock_name


@contextlib.contextmanager
def file_lock(target_path: PathLike, exclusive: bool = True,
              timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT) -> Iterator[None]:
    """Acquire a cooperative file lock around the target path.

    Uses POSIX advisory locking via fcntl when available; otherwise acts as a no-op.
    A ``timeout`` of None blocks until the lock is granted.
    """
    if fcntl is None:
        yield
        return

    target = Path(os.path.expanduser(str(target_path)))
    lock_path = _lock_file_path(target)
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    lock_type = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
    deadline = time.monotonic() + timeout if timeout is not None else None

    with open(lock_path, "a") as lock_file:
        while True:
            try:
                flags = lock_type | fcntl.LOCK_NB if deadline is not None else lock_type
                fcntl.flock(lock_file.fileno(), flags)
                break
            except OSError as exc:  # pragma: no cover - depends on timing
                if exc.errno not in (errno.EACCES, errno.EAGAIN):
                    raise
                if deadline is not None and time.monotonic() >= deadline:
                    raise TimeoutError(f"Timed out waiting for lock on {target}") from exc
                time.sleep(LOCK_SLEEP_INTERVAL)

        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def atomic_write(file_path: PathLike, content: str, *, suffix: str = "",
                 lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
    """
    Atomically replace a file's content.

    The content goes to a temporary file in the same directory which is
    then moved over the target with ``os.replace``.

    Raises:
        OSError: if the file cannot be written
        TimeoutError: if the write lock cannot be acquired
    """
    path_obj = Path(os.path.expanduser(str(file_path)))
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = None
    try:
        with file_lock(path_obj, exclusive=True, timeout=lock_timeout):
            with tempfile.NamedTemporaryFile(
                mode='w',
                dir=str(path_obj.parent),
                prefix='.tmp_',
                suffix=suffix,
                delete=False,
                encoding='utf-8'
            ) as tmp_file:
                tmp_file.write(content)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
                tmp_path = Path(tmp_file.name)

            os.replace(str(tmp_path), str(path_obj))
            logger.debug("Wrote %s", path_obj)
    finally:
        if tmp_path and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


def atomic_write_json(file_path: PathLike, data: Dict[str, Any], indent: int = 2, *,
                      lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
    """Atomically write JSON with sorted keys."""
    content = json.dumps(data, indent=indent, ensure_ascii=False, sort_keys=True)
    atomic_write(file_path, content + "\n", suffix='.json', lock_timeout=lock_timeout)


def read_text(file_path: PathLike, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> Optional[str]:
    """Read a UTF-8 file under a shared lock, or None if it does not exist."""
    path_obj = Path(os.path.expanduser(str(file_path)))
    if not path_obj.exists():
        return None

    with file_lock(path_obj, exclusive=False, timeout=lock_timeout):
        with path_obj.open('r', encoding='utf-8') as handle:
            return handle.read()
