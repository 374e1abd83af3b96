# -*- coding: utf-8 -*-

import typing as T
import dataclasses

import moto
from s3pathlib import context
from boto_session_manager import BotoSesManager

from ..bootstrap import bootstrap
from ..logger import Logger
from ..store import BlobStore

if T.TYPE_CHECKING:  # pragma: no cover
    from mypy_boto3_s3.client import S3Client


@dataclasses.dataclass(frozen=True)
class MockAwsTestConfig:
    use_mock: bool = dataclasses.field()
    aws_region: str = dataclasses.field()
    dynamodb_table_name: str = dataclasses.field()
    aws_profile: T.Optional[str] = dataclasses.field(default=None)


class _BaseMockAwsTest:
    @classmethod
    def setup_mock(cls, mock_aws_test_config: MockAwsTestConfig):
        cls.mock_aws_test_config = mock_aws_test_config
        if mock_aws_test_config.use_mock:
            cls.mock_aws = moto.mock_aws()
            cls.mock_aws.start()

        if mock_aws_test_config.use_mock:
            cls.bsm: "BotoSesManager" = BotoSesManager(
                region_name=mock_aws_test_config.aws_region
            )
        else:
            cls.bsm: "BotoSesManager" = BotoSesManager(
                profile_name=mock_aws_test_config.aws_profile,
                region_name=mock_aws_test_config.aws_region,
            )

        cls.bucket: str = (
            f"{cls.bsm.aws_account_id}-{mock_aws_test_config.aws_region}-finalize"
        )
        cls.dynamodb_table_name = mock_aws_test_config.dynamodb_table_name

        context.attach_boto_session(cls.bsm.boto_ses)
        cls.s3_client: "S3Client" = cls.bsm.s3_client

        bootstrap(
            bsm=cls.bsm,
            aws_region=mock_aws_test_config.aws_region,
            bucket_name=cls.bucket,
            dynamodb_table_name=cls.dynamodb_table_name,
        )

    @classmethod
    def teardown_class(cls):
        if cls.mock_aws_test_config.use_mock:
            cls.mock_aws.stop()

    def new_store(self, logger: T.Optional[Logger] = None) -> BlobStore:
        if logger is None:
            logger = Logger()
        return BlobStore(
            bsm=self.bsm,
            bucket=self.bucket,
            dynamodb_table_name=self.dynamodb_table_name,
            logger=logger,
        )

    def put_blobs(self, keys: T.Iterable[str], body: str = "hello"):
        for key in keys:
            self.s3_client.put_object(Bucket=self.bucket, Key=key, Body=body)

    def get_text(self, key: str) -> str:
        res = self.s3_client.get_object(Bucket=self.bucket, Key=key)
        return res["Body"].read().decode("utf-8")

    def list_keys(self, prefix: str = "") -> T.List[str]:
        res = self.s3_client.list_objects_v2(Bucket=self.bucket, Prefix=prefix)
        return sorted(obj["Key"] for obj in res.get("Contents", []))

    def clear_bucket(self):
        for key in self.list_keys():
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)

    def clear_leases(self):
        Lease = self.new_store()._lease_class
        with Lease.batch_write() as batch:
            for item in Lease.scan():
                batch.delete(item)


class BaseMockAwsTest(_BaseMockAwsTest):
    use_mock: bool = True

    @classmethod
    def setup_class(cls):
        mock_aws_test_config = MockAwsTestConfig(
            use_mock=cls.use_mock,
            aws_region="us-east-1",
            dynamodb_table_name="finalize-build-leases-test",
            aws_profile="bmt_app_dev_us_east_1",  # Use default profile
        )
        cls.setup_mock(mock_aws_test_config)
        cls.setup_mock_post_hook()

    @classmethod
    def setup_mock_post_hook(cls):
        pass

    def setup_method(self, method):
        self.clear_bucket()
        self.clear_leases()
