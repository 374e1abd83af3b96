# -*- coding: utf-8 -*-

"""
Finalize a build: take the semaphore lease, check the version marker, and
promote the version to ``Latest`` unless someone already did.

Run flow::

    Start
      -> semaphore blob ensured
      -> lease acquired
         -> version already finalized: release lease, succeed
         -> not finalized: purge stale markers, drop marker, promote,
            release lease, succeed iff every step succeeded and no error
            was logged

Parallel build pipelines finishing at the same time all call this. The lease
lets exactly one of them promote at a time; the marker makes every later
caller for the same version a no-op.
"""

import typing as T
import dataclasses
from datetime import timedelta

from boto_session_manager import BotoSesManager

from . import constants
from . import exc
from .logger import Logger
from .store import BlobStore
from .lease import LeaseManager
from .gate import VersionGate, normalize_folder
from .promotion import PromotionEngine


@dataclasses.dataclass
class FinalizeConfig:
    """
    Inputs of one finalize run.

    :param semaphore_blob: key of the blob leased as the mutex token.
    :param finalize_container: prefix under which version markers live.
    :param container_name: the bucket.
    :param channel: channel whose ``Latest`` view is refreshed.
    :param version: version being finalized.
    :param publish_rids: runtime identifiers that get a version stamp.
    :param commit_hash: optional first line of each version stamp.
    :param force_publish: promote even if the version marker exists.
    :param max_wait: how long to wait for the lease, seconds or ``"HH:MM:SS"``.
    :param delay: pause between lease attempts.
    :param lease_duration: lease lifetime, renewed while promotion runs.
    :param max_workers: copy fan-out width.
    :param dynamodb_table_name: table holding the lease items.
    """

    semaphore_blob: str = dataclasses.field()
    finalize_container: str = dataclasses.field()
    container_name: str = dataclasses.field()
    channel: str = dataclasses.field()
    version: str = dataclasses.field()
    publish_rids: T.List[str] = dataclasses.field()
    commit_hash: T.Optional[str] = dataclasses.field(default=None)
    force_publish: bool = dataclasses.field(default=False)
    max_wait: T.Union[int, float, str, timedelta] = dataclasses.field(
        default=constants.DEFAULT_MAX_WAIT
    )
    delay: T.Union[int, float, str, timedelta] = dataclasses.field(
        default=constants.DEFAULT_DELAY
    )
    lease_duration: T.Union[int, float, str, timedelta] = dataclasses.field(
        default=constants.DEFAULT_LEASE_DURATION
    )
    max_workers: int = dataclasses.field(default=constants.DEFAULT_MAX_WORKERS)
    dynamodb_table_name: str = dataclasses.field(
        default=constants.DEFAULT_DYNAMODB_TABLE_NAME
    )

    def __post_init__(self):
        for name in [
            "semaphore_blob",
            "finalize_container",
            "container_name",
            "channel",
            "version",
        ]:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} is required")
        if isinstance(self.publish_rids, str):
            raise TypeError("publish_rids must be a sequence of strings")
        self.publish_rids = list(self.publish_rids)
        if len(self.publish_rids) == 0:
            raise ValueError("publish_rids is required")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.finalize_container = normalize_folder(self.finalize_container)


class FinalizeOrchestrator:
    """
    :param config: run inputs.
    :param store: blob store bound to ``config.container_name``.
    :param logger: host error channel, defaults to the store's logger.

    **Usage Examples**::

        store = BlobStore(bsm=bsm, bucket="dotnetcli")
        ok = FinalizeOrchestrator(config, store).execute()
    """

    def __init__(
        self,
        config: FinalizeConfig,
        store: BlobStore,
        logger: T.Optional[Logger] = None,
    ):
        if store.bucket != config.container_name:
            raise ValueError(
                f"store bucket {store.bucket!r} does not match "
                f"container_name {config.container_name!r}"
            )
        self.config = config
        self.store = store
        if logger is None:
            logger = store.logger
        self.logger = logger.bind(
            channel=config.channel,
            version=config.version,
        )
        self.gate = VersionGate(
            store=store,
            finalize_container=config.finalize_container,
            logger=self.logger,
        )
        self.lease_manager = LeaseManager(
            store=store,
            semaphore_blob=config.semaphore_blob,
            max_wait=config.max_wait,
            delay=config.delay,
            duration=config.lease_duration,
            logger=self.logger,
        )
        self.engine = PromotionEngine(
            store=store,
            channel=config.channel,
            version=config.version,
            publish_rids=config.publish_rids,
            commit_hash=config.commit_hash,
            finalize_container=config.finalize_container,
            max_workers=config.max_workers,
            logger=self.logger,
        )

    def execute(self) -> bool:
        """
        Run the finalization protocol.

        Lease timeouts and store failures during the gate checks are logged
        as errors and turn into ``False``. Any other exception propagates.
        The lease is released on every path.

        :returns: ``True`` only if every purge, marker, copy and stamp step
            succeeded and no error was logged.
        """
        if self.logger.has_logged_errors:
            return False
        ok = False
        try:
            self.gate.ensure_semaphore_exists(self.config.semaphore_blob)
            with self.lease_manager.hold():
                ok = self._run_locked()
        except exc.LeaseTimeoutError as e:
            self.logger.error(
                "lease_timeout",
                semaphore_blob=e.path,
                max_wait=e.max_wait,
            )
        except exc.TransientStoreError as e:
            self.logger.error(
                "store_operation_failed",
                operation=e.operation,
                key=e.key,
                error=str(e.cause),
            )
        return ok and not self.logger.has_logged_errors

    def _run_locked(self) -> bool:
        version = self.config.version
        if self.gate.is_finalized(version) and not self.config.force_publish:
            self.logger.debug(
                "version_marker_found",
                marker=self.gate.marker_path(version),
            )
            self.logger.info("already_published_skipping_finalization")
            return True

        purge = self.engine.purge_stale_markers()
        # racing builds that get the lease after us see this and back off
        marker_ok = self.gate.ensure_marker_exists(version)
        promoted = self.engine.promote()
        if not (purge.ok and marker_ok and promoted):
            self.logger.warning(
                "finalization_incomplete",
                purge_failed=purge.failed,
                marker_ok=marker_ok,
                promoted=promoted,
            )
            return False
        return True


def finalize_build(
    bsm: BotoSesManager,
    config: FinalizeConfig,
    logger: T.Optional[Logger] = None,
) -> bool:
    """
    Build the store for ``config`` and run :class:`FinalizeOrchestrator`.

    :returns: overall success.
    """
    if logger is None:
        logger = Logger()
    store = BlobStore(
        bsm=bsm,
        bucket=config.container_name,
        dynamodb_table_name=config.dynamodb_table_name,
        logger=logger,
    )
    return FinalizeOrchestrator(config=config, store=store, logger=logger).execute()
