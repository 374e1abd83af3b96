# -*- coding: utf-8 -*-

from . import exc
from . import utils
from .constants import LATEST_TOKEN
from .constants import DEFAULT_MAX_WAIT
from .constants import DEFAULT_DELAY
from .constants import DEFAULT_LEASE_DURATION
from .constants import DEFAULT_MAX_WORKERS
from .constants import DEFAULT_DYNAMODB_TABLE_NAME
from .logger import Logger
from .bootstrap import bootstrap
from .store import Lease
from .store import BlobStore
from .lease import LeaseManager
from .gate import VersionGate
from .promotion import BatchResult
from .promotion import PromotionEngine
from .finalize import FinalizeConfig
from .finalize import FinalizeOrchestrator
from .finalize import finalize_build
