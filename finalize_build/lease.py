# -*- coding: utf-8 -*-

"""
Serialize finalization across concurrent callers with a lease on a semaphore
blob.

While the lease is held a daemon thread keeps renewing it, so a promotion
that runs longer than one lease duration does not lose its exclusivity.
Only a lease taken over by someone else, or one that could not be renewed
before it expired, is reported as ``lease_lost``, which fails the run.
"""

import typing as T
import threading
import contextlib
from datetime import timedelta

from . import constants
from . import exc
from .logger import Logger
from .store import BlobStore, Lease
from .utils import to_seconds, get_utc_now

DurationLike = T.Union[int, float, str, timedelta]


class LeaseManager:
    """
    :param store: the blob store holding the semaphore blob.
    :param semaphore_blob: key of the blob used as the mutex token.
    :param max_wait: how long :meth:`acquire` keeps retrying.
    :param delay: pause between two acquire attempts.
    :param duration: lease lifetime, renewed every third of it. A renewal
        that fails for a transient reason is retried every ``delay`` seconds
        until the lease would expire.

    **Usage Examples**::

        manager = LeaseManager(store, "main/semaphore/finalize")
        with manager.hold():
            ...  # nobody else holds the lease in here
    """

    def __init__(
        self,
        store: BlobStore,
        semaphore_blob: str,
        max_wait: DurationLike = constants.DEFAULT_MAX_WAIT,
        delay: DurationLike = constants.DEFAULT_DELAY,
        duration: DurationLike = constants.DEFAULT_LEASE_DURATION,
        logger: T.Optional[Logger] = None,
    ):
        self.store = store
        self.semaphore_blob = semaphore_blob
        self.max_wait = to_seconds(max_wait)
        self.delay = to_seconds(delay)
        self.duration = to_seconds(duration)
        if logger is None:
            logger = store.logger
        self.logger = logger.bind(semaphore_blob=semaphore_blob)
        self.lease: T.Optional[Lease] = None
        self._stop_renewal: T.Optional[threading.Event] = None
        self._renewal_thread: T.Optional[threading.Thread] = None

    @property
    def is_held(self) -> bool:
        return self.lease is not None

    def acquire(self) -> Lease:
        """
        Block until the lease is ours.

        :raises LeaseTimeoutError: when ``max_wait`` runs out first.
        """
        if self.lease is not None:
            return self.lease
        self.logger.info("acquiring_lease", max_wait=self.max_wait, delay=self.delay)
        self.lease = self.store.lease_acquire(
            path=self.semaphore_blob,
            max_wait=self.max_wait,
            delay=self.delay,
            duration=self.duration,
        )
        self._start_renewal()
        return self.lease

    def release(self):
        """
        Give the lease back. No-op if it was never acquired.
        """
        if self.lease is None:
            return
        self._stop_renewal_thread()
        self.logger.info("releasing_lease", lease_id=self.lease.lease_id)
        try:
            self.store.lease_release(self.lease)
        finally:
            self.lease = None

    @contextlib.contextmanager
    def hold(self) -> T.Iterator[Lease]:
        lease = self.acquire()
        try:
            yield lease
        finally:
            self.release()

    def _start_renewal(self):
        self._stop_renewal = threading.Event()
        self._renewal_thread = threading.Thread(
            target=self._renew_loop,
            args=(self.lease, self._stop_renewal),
            name=f"lease-renewal-{self.semaphore_blob}",
            daemon=True,
        )
        self._renewal_thread.start()

    def _stop_renewal_thread(self):
        if self._stop_renewal is not None:
            self._stop_renewal.set()
        if self._renewal_thread is not None:
            self._renewal_thread.join()
        self._stop_renewal = None
        self._renewal_thread = None

    def _renew_loop(self, lease: Lease, stop: threading.Event):
        interval = self.duration / 3
        wait = interval
        while not stop.wait(wait):
            try:
                renewed = self.store.lease_renew(lease, duration=self.duration)
            except exc.TransientStoreError as e:
                # still ours until expire_at, keep trying until then
                if get_utc_now() + timedelta(seconds=self.delay) >= lease.expire_at:
                    self.logger.error(
                        "lease_lost",
                        lease_id=lease.lease_id,
                        reason="renewal_failed_until_expiry",
                        error=str(e.cause),
                    )
                    return
                self.logger.warning(
                    "lease_renew_retry",
                    lease_id=lease.lease_id,
                    error=str(e.cause),
                )
                wait = self.delay if self.delay > 0 else interval
                continue
            if not renewed:
                self.logger.error(
                    "lease_lost",
                    lease_id=lease.lease_id,
                    reason="taken_over",
                )
                return
            wait = interval
