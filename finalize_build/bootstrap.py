# -*- coding: utf-8 -*-

import typing as T

import botocore.exceptions
from boto_session_manager import BotoSesManager
from pynamodb.constants import PAY_PER_REQUEST_BILLING_MODE

from . import dynamodb


def bootstrap(
    bsm: BotoSesManager,
    aws_region: str,
    bucket_name: str,
    dynamodb_table_name: str,
    dynamodb_write_capacity_units: T.Optional[int] = None,
    dynamodb_read_capacity_units: T.Optional[int] = None,
):
    """
    Create the S3 bucket and the DynamoDB lease table if they don't exist.

    Safe to run multiple times.

    :param bsm: Boto session manager for AWS credentials and configuration
    :param aws_region: region of the bucket and the table
    :param bucket_name: the blob container
    :param dynamodb_table_name: table holding semaphore leases
    :param dynamodb_write_capacity_units: provisioned write capacity, on-demand if None
    :param dynamodb_read_capacity_units: provisioned read capacity, on-demand if None
    """
    kwargs = dict(Bucket=bucket_name)
    if aws_region != "us-east-1":
        kwargs["CreateBucketConfiguration"] = dict(LocationConstraint=aws_region)
    try:
        bsm.s3_client.create_bucket(**kwargs)
    except botocore.exceptions.ClientError as e:
        if e.response["Error"]["Code"] not in (
            "BucketAlreadyExists",
            "BucketAlreadyOwnedByYou",
        ):
            raise e

    Lease = dynamodb.lease_class(
        table_name=dynamodb_table_name,
        region=aws_region,
        credentials=bsm.boto_ses.get_credentials().get_frozen_credentials(),
    )
    if Lease.exists():
        return
    if dynamodb_write_capacity_units is None and dynamodb_read_capacity_units is None:
        Lease.create_table(billing_mode=PAY_PER_REQUEST_BILLING_MODE, wait=True)
    else:
        Lease.create_table(
            read_capacity_units=dynamodb_read_capacity_units,
            write_capacity_units=dynamodb_write_capacity_units,
            wait=True,
        )
