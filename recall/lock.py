"""Process-wide advisory lock guarding every store mutation."""

import fcntl
import os
import pathlib
from datetime import datetime, timezone

from recall.errors import LockContention


class ProcessLock:
    """Exclusive, non-blocking ``flock`` on a lock file.

    Usage:
        with ProcessLock(recall_dir / "recall.lock"):
            ...  # load, mutate, save

    A second holder fails immediately with LockContention. The lock is
    released on every exit from the ``with`` block, and by the kernel if the
    process dies.
    """

    def __init__(self, path: pathlib.Path | str):
        self.path = pathlib.Path(path)
        self._fd = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self):
        if self._fd is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = open(self.path, "a+")
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            fd.close()
            raise LockContention(self.path) from None
        fd.seek(0)
        fd.truncate()
        fd.write(f"{os.getpid()}\n{datetime.now(timezone.utc).isoformat()}\n")
        fd.flush()
        self._fd = fd

    def release(self):
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            self._fd.close()
            self._fd = None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
