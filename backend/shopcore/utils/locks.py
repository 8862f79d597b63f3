import logging
import os
import re
from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator, Optional

from filelock import FileLock, Timeout

from shopcore.config import settings
from shopcore.services.exceptions import StockLockTimeout

log = logging.getLogger("shopcore.inventory")

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def _lockfile(lock_dir: str, product_id: str) -> str:
    return os.path.join(lock_dir, f"stock_{_UNSAFE.sub('_', product_id)}.lock")


@contextmanager
def stock_lock(
    product_ids: Iterable[str],
    timeout: Optional[float] = None,
    lock_dir: Optional[str] = None,
) -> Iterator[None]:
    """
    Hold one file lock per product for the duration of the block.

    Locks are taken in sorted id order so two flows touching overlapping
    product sets cannot deadlock each other. The database conditional
    update stays the authority on stock; these locks only queue
    same-product writers on this host.
    """
    timeout = settings.STOCK_LOCK_TIMEOUT_SECONDS if timeout is None else timeout
    lock_dir = lock_dir or settings.STOCK_LOCK_DIR
    os.makedirs(lock_dir, exist_ok=True)

    with ExitStack() as stack:
        for pid in sorted(set(product_ids)):
            lock = FileLock(_lockfile(lock_dir, pid))
            try:
                stack.enter_context(lock.acquire(timeout=timeout))
            except Timeout:
                log.warning("stock lock timeout product=%s after %ss", pid, timeout)
                raise StockLockTimeout(pid)
        yield
