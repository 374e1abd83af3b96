# -*- coding: utf-8 -*-

LATEST_TOKEN = "Latest"

DEFAULT_MAX_WAIT = 60  # seconds
DEFAULT_DELAY = 0.5  # seconds
DEFAULT_LEASE_DURATION = 60  # seconds
DEFAULT_MAX_WORKERS = 16
DEFAULT_DYNAMODB_TABLE_NAME = "finalize-build-leases"

BINARIES_FOLDER = "Binaries"
INSTALLERS_FOLDER = "Installers"
DNVM_FOLDER = "dnvm"
SHAREDFX_STAMP_PREFIX = "latest.sharedfx."
VERSION_FILE_SUFFIX = ".version"
