# -*- coding: utf-8 -*-

"""
DynamoDB ORM model for the semaphore lease.

S3 objects cannot be leased, so the exclusive hold on a semaphore blob is a
DynamoDB item whose hash key is ``{bucket}/{semaphore_blob}``. Acquiring the
lease is a conditional put that only succeeds when no item exists or the
existing item has expired; renewing and releasing are conditioned on the
caller's ``lease_id``.
"""

import typing as T
import uuid
from datetime import datetime, timedelta

from pynamodb.models import Model
from pynamodb.attributes import UnicodeAttribute, UTCDateTimeAttribute

from .constants import DEFAULT_DYNAMODB_TABLE_NAME
from .utils import get_utc_now


def encode_lease_pk(bucket: str, path: str) -> str:
    return f"{bucket}/{path}"


def new_lease_id() -> str:
    return uuid.uuid4().hex


class Lease(Model):
    """
    One item per leased semaphore blob.
    """

    class Meta:
        table_name = DEFAULT_DYNAMODB_TABLE_NAME

    pk: T.Union[str, UnicodeAttribute] = UnicodeAttribute(hash_key=True)
    lease_id: T.Union[str, UnicodeAttribute] = UnicodeAttribute()
    acquired_at: T.Union[datetime, UTCDateTimeAttribute] = UTCDateTimeAttribute(
        default=get_utc_now,
    )
    expire_at: T.Union[datetime, UTCDateTimeAttribute] = UTCDateTimeAttribute()

    @classmethod
    def new(
        cls,
        bucket: str,
        path: str,
        duration: float,
        lease_id: T.Optional[str] = None,
        now: T.Optional[datetime] = None,
    ):
        if lease_id is None:
            lease_id = new_lease_id()
        if now is None:
            now = get_utc_now()
        return cls(
            pk=encode_lease_pk(bucket, path),
            lease_id=lease_id,
            acquired_at=now,
            expire_at=now + timedelta(seconds=duration),
        )

    @property
    def bucket(self) -> str:
        return self.pk.split("/", 1)[0]

    @property
    def path(self) -> str:
        return self.pk.split("/", 1)[1]

    def to_dict(self) -> T.Dict[str, T.Any]:
        return dict(
            path=self.path,
            lease_id=self.lease_id,
            acquired_at=self.acquired_at,
            expire_at=self.expire_at,
        )


def lease_class(
    table_name: str,
    region: str,
    credentials: T.Optional[T.Any] = None,
) -> T.Type[Lease]:
    """
    Bind :class:`Lease` to a concrete table and region.

    :param credentials: optional ``botocore`` frozen credentials; when given the
        model talks to DynamoDB with exactly these instead of the default chain.
    """
    _table_name = table_name
    _region = region

    class _Lease(Lease):
        class Meta:
            table_name = _table_name
            region = _region
            if credentials is not None:
                aws_access_key_id = credentials.access_key
                aws_secret_access_key = credentials.secret_key
                aws_session_token = credentials.token

    return _Lease
