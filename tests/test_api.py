# -*- coding: utf-8 -*-

from finalize_build import api


def test():
    _ = api
    _ = api.exc
    _ = api.exc.FinalizeError
    _ = api.exc.LeaseTimeoutError
    _ = api.exc.TransientStoreError
    _ = api.utils.parse_version
    _ = api.utils.is_bare_version
    _ = api.utils.to_latest_name
    _ = api.LATEST_TOKEN
    _ = api.DEFAULT_MAX_WAIT
    _ = api.DEFAULT_DELAY
    _ = api.DEFAULT_LEASE_DURATION
    _ = api.DEFAULT_MAX_WORKERS
    _ = api.DEFAULT_DYNAMODB_TABLE_NAME
    _ = api.Logger
    _ = api.Logger.has_logged_errors
    _ = api.bootstrap
    _ = api.Lease
    _ = api.BlobStore
    _ = api.BlobStore.list
    _ = api.BlobStore.exists
    _ = api.BlobStore.copy
    _ = api.BlobStore.delete
    _ = api.BlobStore.put_string
    _ = api.BlobStore.lease_acquire
    _ = api.BlobStore.lease_renew
    _ = api.BlobStore.lease_release
    _ = api.LeaseManager
    _ = api.LeaseManager.acquire
    _ = api.LeaseManager.release
    _ = api.LeaseManager.hold
    _ = api.VersionGate
    _ = api.VersionGate.is_finalized
    _ = api.VersionGate.ensure_semaphore_exists
    _ = api.VersionGate.ensure_marker_exists
    _ = api.BatchResult
    _ = api.PromotionEngine
    _ = api.PromotionEngine.purge_stale_markers
    _ = api.PromotionEngine.copy_blobs
    _ = api.PromotionEngine.publish_version_stamps
    _ = api.PromotionEngine.promote
    _ = api.FinalizeConfig
    _ = api.FinalizeOrchestrator
    _ = api.FinalizeOrchestrator.execute
    _ = api.finalize_build


if __name__ == "__main__":
    from finalize_build.tests import run_cov_test

    run_cov_test(
        __file__,
        "finalize_build.api",
        preview=False,
    )
