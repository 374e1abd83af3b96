# -*- coding: utf-8 -*-

"""
Publish a finished build as the "latest" release of a channel, safely
under concurrent finalization attempts.
"""

__version__ = "0.1.1"
__short_description__ = (
    "Lease guarded, idempotent promotion of build artifacts to Latest on S3."
)
__license__ = "MIT"
