# -*- coding: utf-8 -*-
"""Advisory lock serialising writers of one certificate/key pair.

On POSIX ``filelock`` takes ``flock(2)`` on a file next to the pair, so the
lock is shared with the ``flock(1)`` wrapper used by the rotation cron job.
Each ``DestinationLock`` owns its own ``FileLock`` and file description, so
threads of one process exclude each other too.
"""

import logging

from filelock import FileLock

LOCK_FILE_MODE = 0o600


class DestinationLock:
    """Context manager holding an exclusive lock on ``lock_file``.

    Args:
        lock_file (str): Path of the lock file, created when missing.
        timeout (float): Seconds to wait, negative waits forever.
    """

    def __init__(self, lock_file, timeout=-1):
        self._lock_file = lock_file
        self._timeout = timeout
        self._lock = FileLock(lock_file, timeout=timeout, mode=LOCK_FILE_MODE)

    @property
    def lock_file(self):
        return self._lock_file

    @property
    def locked(self):
        return self._lock.is_locked

    def acquire(self):
        self._lock.acquire()
        logging.getLogger(__name__).debug(f"Acquired {self._lock_file}")

    def release(self):
        if not self._lock.is_locked:
            return
        self._lock.release()
        logging.getLogger(__name__).debug(f"Released {self._lock_file}")

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
