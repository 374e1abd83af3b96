# -*- coding: utf-8 -*-

"""
Make finalization idempotent with marker blobs.

A marker blob at ``{finalize_container}{version}`` records that the version
has begun (or finished) finalizing. Only its existence matters. Two racing
builds may both write a placeholder; whichever body wins is irrelevant.
"""

import typing as T

from .logger import Logger
from .store import BlobStore
from .utils import get_utc_now


def normalize_folder(prefix: str) -> str:
    if prefix.endswith("/"):
        return prefix
    return f"{prefix}/"


class VersionGate:
    def __init__(
        self,
        store: BlobStore,
        finalize_container: str,
        logger: T.Optional[Logger] = None,
    ):
        self.store = store
        self.finalize_container = normalize_folder(finalize_container)
        self.logger = store.logger if logger is None else logger

    def marker_path(self, version: str) -> str:
        return f"{self.finalize_container}{version}"

    def is_finalized(self, version: str) -> bool:
        """
        True iff at least one blob is listed under the version marker path.

        :raises TransientStoreError: if the listing fails.
        """
        return self.store.exists(self.marker_path(version))

    def ensure_exists(self, path: str) -> bool:
        """
        Upload a timestamp placeholder to ``path`` unless something is
        already there.

        :returns: ``False`` only if the upload was attempted and failed.
        """
        if self.store.exists(path):
            return True
        self.logger.debug("creating_placeholder_blob", key=path)
        return self.store.put_string(path, str(get_utc_now()))

    def ensure_semaphore_exists(self, path: str) -> bool:
        return self.ensure_exists(path)

    def ensure_marker_exists(self, version: str) -> bool:
        return self.ensure_exists(self.marker_path(version))
