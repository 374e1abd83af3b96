# -*- coding: utf-8 -*-

"""
Blob store facade over a single S3 bucket.

Finalization needs very little from the object store: prefix listing, server
side copy, delete, uploading a small text body, and an exclusive lease on one
well-known key. :class:`BlobStore` exposes exactly that, on top of
``s3pathlib`` for object operations and a ``pynamodb`` model for the lease
(see :mod:`finalize_build.dynamodb`).

Error handling
------------------------------------------------------------------------------
- :meth:`BlobStore.list` raises :class:`~finalize_build.exc.TransientStoreError`.
  Gate checks depend on a correct listing, so a failed listing is fatal.
- :meth:`BlobStore.copy`, :meth:`BlobStore.delete` and
  :meth:`BlobStore.put_string` log the failure through the logger's error
  channel and return ``False``. Callers aggregate the booleans.
- :meth:`BlobStore.lease_acquire` raises
  :class:`~finalize_build.exc.LeaseTimeoutError` when the wait window runs out.
- :meth:`BlobStore.lease_renew` returns ``False`` when the lease was taken
  over and raises :class:`~finalize_build.exc.TransientStoreError` on any
  other failure.
- :meth:`BlobStore.lease_release` never raises.
"""

import typing as T
import time
import dataclasses
from datetime import datetime, timedelta
from functools import cached_property

import botocore.exceptions
from boto_session_manager import BotoSesManager
from s3pathlib import S3Path, context
from func_args import NOTHING
from pynamodb.connection import Connection
from pynamodb.exceptions import PutError, UpdateError, DeleteError

from . import constants
from . import dynamodb
from . import exc
from .logger import Logger
from .utils import get_utc_now

if T.TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_s3.client import S3Client

_store_errors = (
    botocore.exceptions.ClientError,
    botocore.exceptions.BotoCoreError,
)

_CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


@dataclasses.dataclass
class Lease:
    """
    An exclusive hold on a semaphore blob.

    :param path: the leased blob key.
    :param lease_id: opaque id proving ownership.
    :param acquired_at: UTC time the lease was taken.
    :param expire_at: UTC time the lease lapses unless renewed.
    """

    path: str
    lease_id: str
    acquired_at: datetime
    expire_at: datetime


@dataclasses.dataclass
class BlobStore:
    """
    :param bsm: Boto session manager for AWS credentials and configuration
    :param bucket: the blob container, every key is relative to it
    :param dynamodb_table_name: table holding semaphore leases
    :param logger: error channel of the invoking host

    **Usage Examples**::

        store = BlobStore(bsm=bsm, bucket="dotnetcli")
        store.put_string("finalize/2.0.0", "2017-06-27 10:00:00")
        store.list("finalize/")
        store.copy("main/Binaries/2.0.0/x-2.0.0.zip", "main/Binaries/Latest/x-Latest.zip")
    """

    bsm: BotoSesManager = dataclasses.field()
    bucket: str = dataclasses.field()
    dynamodb_table_name: str = dataclasses.field(
        default=constants.DEFAULT_DYNAMODB_TABLE_NAME
    )
    logger: Logger = dataclasses.field(default_factory=Logger)

    def __post_init__(self):
        # boto3 clients are thread safe but creating them is not, the copy
        # fan-out shares this one
        self.s3_client: "S3Client" = self.bsm.s3_client

    @property
    def aws_region(self) -> str:
        return self.bsm.aws_region

    @cached_property
    def _lease_class(self) -> T.Type[dynamodb.Lease]:
        return dynamodb.lease_class(
            table_name=self.dynamodb_table_name,
            region=self.aws_region,
            credentials=self.bsm.boto_ses.get_credentials().get_frozen_credentials(),
        )

    def connect_boto_session(self):
        """
        Explicitly connect s3pathlib and pynamodb to this store's AWS credential.
        """
        context.attach_boto_session(self.bsm.boto_ses)
        with self.bsm.awscli():
            Connection()

    def s3path(self, key: str) -> S3Path:
        return S3Path(self.bucket).joinpath(key)

    # ------------------------------------------------------------------------------
    # Blob
    # ------------------------------------------------------------------------------
    def list(self, prefix: str) -> T.List[str]:
        """
        Return the keys of all blobs starting with ``prefix``.

        :raises TransientStoreError: if the listing fails.
        """
        keys = list()
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except _store_errors as e:
            raise exc.TransientStoreError("list", prefix, e) from e
        return keys

    def exists(self, prefix: str) -> bool:
        return len(self.list(prefix)) != 0

    def copy(self, source: str, destination: str) -> bool:
        """
        Server side copy, overwriting the destination.
        """
        try:
            self.s3path(source).copy_to(
                self.s3path(destination),
                overwrite=True,
                bsm=self.bsm,
            )
            return True
        except _store_errors as e:
            self.logger.error(
                "copy_blob_failed",
                source=source,
                destination=destination,
                error=str(e),
            )
            return False

    def delete(self, key: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except _store_errors as e:
            self.logger.error("delete_blob_failed", key=key, error=str(e))
            return False

    def put_string(
        self,
        key: str,
        content: str,
        content_type: str = NOTHING,
    ) -> bool:
        kwargs = dict()
        if content_type is not NOTHING:
            kwargs["content_type"] = content_type
        try:
            self.s3path(key).write_text(content, bsm=self.bsm, **kwargs)
            return True
        except _store_errors as e:
            self.logger.error("put_blob_failed", key=key, error=str(e))
            return False

    # ------------------------------------------------------------------------------
    # Lease
    # ------------------------------------------------------------------------------
    def _get_lease_object(self, lease: dynamodb.Lease) -> Lease:
        return Lease(**lease.to_dict())

    def lease_acquire(
        self,
        path: str,
        max_wait: float = constants.DEFAULT_MAX_WAIT,
        delay: float = constants.DEFAULT_DELAY,
        duration: float = constants.DEFAULT_LEASE_DURATION,
    ) -> Lease:
        """
        Take an exclusive lease on ``path``, retrying every ``delay`` seconds
        for up to ``max_wait`` seconds.

        A lease nobody renewed past its ``expire_at`` is free to take.

        :raises LeaseTimeoutError: if the lease is still held by someone else
            after ``max_wait`` seconds.
        :raises TransientStoreError: if DynamoDB rejects the write for any
            reason other than the lease being held.
        """
        Lease = self._lease_class
        deadline = time.monotonic() + max_wait
        attempt = 0
        while True:
            attempt += 1
            now = get_utc_now()
            lease = Lease.new(
                bucket=self.bucket,
                path=path,
                duration=duration,
                now=now,
            )
            try:
                lease.save(
                    condition=(Lease.pk.does_not_exist() | (Lease.expire_at <= now))
                )
                self.logger.debug(
                    "lease_acquired",
                    path=path,
                    lease_id=lease.lease_id,
                    attempt=attempt,
                )
                return self._get_lease_object(lease)
            except PutError as e:
                if e.cause_response_code != _CONDITIONAL_CHECK_FAILED:
                    raise exc.TransientStoreError("lease_acquire", path, e) from e

            if time.monotonic() + delay > deadline:
                raise exc.LeaseTimeoutError(path=path, max_wait=max_wait)
            self.logger.debug("lease_busy", path=path, attempt=attempt)
            time.sleep(delay)

    def lease_renew(
        self,
        lease: Lease,
        duration: float = constants.DEFAULT_LEASE_DURATION,
    ) -> bool:
        """
        Push the expiry of a lease we still own ``duration`` seconds out.

        :returns: ``False`` if the lease was taken over by someone else.
        :raises TransientStoreError: if DynamoDB rejects the update for any
            other reason. The lease may still be ours, the caller decides
            whether to retry.
        """
        Lease = self._lease_class
        expire_at = get_utc_now() + timedelta(seconds=duration)
        try:
            Lease(
                pk=dynamodb.encode_lease_pk(self.bucket, lease.path),
            ).update(
                actions=[Lease.expire_at.set(expire_at)],
                condition=(Lease.lease_id == lease.lease_id),
            )
        except UpdateError as e:
            if e.cause_response_code != _CONDITIONAL_CHECK_FAILED:
                raise exc.TransientStoreError("lease_renew", lease.path, e) from e
            self.logger.debug(
                "lease_taken_over",
                path=lease.path,
                lease_id=lease.lease_id,
            )
            return False
        lease.expire_at = expire_at
        return True

    def lease_release(self, lease: T.Optional[Lease]):
        """
        Give up a lease. Releasing ``None``, or a lease that already expired
        and was taken over, is a no-op. Failures are logged, never raised.
        """
        if lease is None:
            return
        Lease = self._lease_class
        try:
            Lease(
                pk=dynamodb.encode_lease_pk(self.bucket, lease.path),
            ).delete(condition=(Lease.lease_id == lease.lease_id))
        except DeleteError as e:
            if e.cause_response_code == _CONDITIONAL_CHECK_FAILED:
                self.logger.debug(
                    "lease_already_gone",
                    path=lease.path,
                    lease_id=lease.lease_id,
                )
            else:
                self.logger.warning(
                    "lease_release_failed",
                    path=lease.path,
                    lease_id=lease.lease_id,
                    error=str(e),
                )
