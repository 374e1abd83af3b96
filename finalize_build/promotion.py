# -*- coding: utf-8 -*-

"""
Promote one version's artifacts to the channel's ``Latest`` view.

Storage layout, relative to the bucket:

.. code-block:: javascript

    {channel}/
    ├── Binaries/
    │   ├── 2.0.0-preview2-25407-01/
    │   │   └── dotnet-runtime-2.0.0-preview2-25407-01-win-x64.zip
    │   └── Latest/
    │       └── dotnet-runtime-Latest-win-x64.zip      # written here
    ├── Installers/
    │   ├── 2.0.0-preview2-25407-01/...
    │   └── Latest/...                                 # written here
    └── dnvm/
        └── latest.sharedfx.win-x64.version            # written here

Promotion is not transactional. A failed copy stays failed until the next
run, and because renaming is deterministic a re-run converges on the same
end state.
"""

import typing as T
import dataclasses
from concurrent.futures import ThreadPoolExecutor, wait

from . import constants
from .logger import Logger
from .store import BlobStore
from .utils import basename, is_bare_version, to_latest_name
from .gate import normalize_folder


@dataclasses.dataclass
class BatchResult:
    """
    Outcome of a batch of independent store operations.

    :param results: ``(key, succeeded)`` for every operation in dispatch order.
    """

    results: T.List[T.Tuple[str, bool]] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(succeeded for _, succeeded in self.results)

    @property
    def succeeded(self) -> T.List[str]:
        return [key for key, succeeded in self.results if succeeded]

    @property
    def failed(self) -> T.List[str]:
        return [key for key, succeeded in self.results if not succeeded]

    def __len__(self) -> int:
        return len(self.results)


class PromotionEngine:
    """
    :param store: the blob store.
    :param channel: channel whose ``Latest`` view is refreshed.
    :param version: the version being promoted.
    :param publish_rids: runtime identifiers that get a version stamp file.
    :param commit_hash: optional first line of every stamp file.
    :param finalize_container: prefix holding the version marker blobs.
    :param container_root: prefix stripped from listed keys before they are
        used, defaults to ``/{bucket}/``.
    :param max_workers: size of the copy thread pool.
    """

    def __init__(
        self,
        store: BlobStore,
        channel: str,
        version: str,
        publish_rids: T.Sequence[str],
        commit_hash: T.Optional[str] = None,
        finalize_container: str = "",
        container_root: T.Optional[str] = None,
        max_workers: int = constants.DEFAULT_MAX_WORKERS,
        logger: T.Optional[Logger] = None,
    ):
        self.store = store
        self.channel = channel
        self.version = version
        self.publish_rids = list(publish_rids)
        self.commit_hash = commit_hash
        self.finalize_container = normalize_folder(finalize_container)
        if container_root is None:
            container_root = f"/{store.bucket}/"
        self.container_root = container_root
        self.max_workers = max_workers
        if logger is None:
            logger = store.logger
        self.logger = logger

    def _strip_container_root(self, key: str) -> str:
        return key.replace(self.container_root, "")

    def folder(self, kind: str, name: str) -> str:
        return f"{self.channel}/{kind}/{name}/"

    # ------------------------------------------------------------------------------
    # Step 1: stale marker purge
    # ------------------------------------------------------------------------------
    def purge_stale_markers(self) -> BatchResult:
        """
        Delete every marker whose file name is nothing but a version string.

        Anything else under the marker prefix is left alone. A failed delete
        does not stop the others.
        """
        result = BatchResult()
        keys = [
            self._strip_container_root(key)
            for key in self.store.list(self.finalize_container)
        ]
        for key in keys:
            if not is_bare_version(basename(key)):
                continue
            self.logger.info("deleting_stale_marker", key=key)
            result.results.append((key, self.store.delete(key)))
        return result

    # ------------------------------------------------------------------------------
    # Step 3, 4: bulk copy
    # ------------------------------------------------------------------------------
    def copy_blobs(
        self,
        source_folder: str,
        destination_folder: str,
    ) -> BatchResult:
        """
        Copy every blob under ``source_folder`` into ``destination_folder``,
        with the version in its file name replaced by ``Latest``.

        All copies run concurrently and all of them are awaited before this
        returns, whether or not some failed.
        """
        source_folder = normalize_folder(source_folder)
        destination_folder = normalize_folder(destination_folder)
        plan = list()
        for blob in self.store.list(source_folder):
            source = self._strip_container_root(blob)
            destination = f"{destination_folder}{to_latest_name(basename(blob))}"
            self.logger.info("copying_blob", source=source, destination=destination)
            plan.append((source, destination))

        result = BatchResult()
        if not plan:
            self.logger.warning("nothing_to_copy", source_folder=source_folder)
            return result

        with ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(plan))
        ) as executor:
            futures = [
                executor.submit(self.store.copy, source, destination)
                for source, destination in plan
            ]
            wait(futures)

        for (source, destination), future in zip(plan, futures):
            error = future.exception()
            if error is None:
                result.results.append((destination, future.result()))
            else:
                self.logger.error(
                    "copy_blob_crashed",
                    source=source,
                    destination=destination,
                    error=repr(error),
                )
                result.results.append((destination, False))
        return result

    def copy_binaries(self) -> BatchResult:
        return self.copy_blobs(
            self.folder(constants.BINARIES_FOLDER, self.version),
            self.folder(constants.BINARIES_FOLDER, constants.LATEST_TOKEN),
        )

    def copy_installers(self) -> BatchResult:
        return self.copy_blobs(
            self.folder(constants.INSTALLERS_FOLDER, self.version),
            self.folder(constants.INSTALLERS_FOLDER, constants.LATEST_TOKEN),
        )

    # ------------------------------------------------------------------------------
    # Step 5: shared framework version stamps
    # ------------------------------------------------------------------------------
    def sharedfx_version_content(self) -> str:
        lines = list()
        if self.commit_hash and self.commit_hash.strip():
            lines.append(self.commit_hash)
        lines.append(self.version)
        return "".join(f"{line}\n" for line in lines)

    def stamp_path(self, rid: str) -> str:
        return (
            f"{self.channel}/{constants.DNVM_FOLDER}/"
            f"{constants.SHAREDFX_STAMP_PREFIX}{rid}{constants.VERSION_FILE_SUFFIX}"
        )

    def publish_version_stamps(self) -> BatchResult:
        result = BatchResult()
        content = self.sharedfx_version_content()
        for rid in self.publish_rids:
            key = self.stamp_path(rid)
            self.logger.info("publishing_version_stamp", key=key, rid=rid)
            result.results.append((key, self.store.put_string(key, content)))
        return result

    def promote(self) -> bool:
        """
        Refresh ``Binaries/Latest``, ``Installers/Latest`` and the version
        stamps. Every phase runs even if an earlier one failed.
        """
        binaries = self.copy_binaries()
        installers = self.copy_installers()
        stamps = self.publish_version_stamps()
        self.logger.info(
            "promotion_finished",
            copied=len(binaries.succeeded) + len(installers.succeeded),
            failed=len(binaries.failed) + len(installers.failed),
            stamps=len(stamps.succeeded),
        )
        return binaries.ok and installers.ok and stamps.ok
