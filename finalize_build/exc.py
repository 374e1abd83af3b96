# -*- coding: utf-8 -*-


class FinalizeError(Exception):
    pass


class LeaseTimeoutError(FinalizeError):
    """
    The lease on the semaphore blob could not be acquired within the
    configured wait window.
    """

    def __init__(self, path: str, max_wait: float):
        self.path = path
        self.max_wait = max_wait
        super().__init__(
            f"failed to acquire lease on {path!r} within {max_wait} seconds"
        )


class TransientStoreError(FinalizeError):
    """
    A single list / copy / delete / put call against the store failed.
    """

    def __init__(self, operation: str, key: str, cause: Exception):
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"{operation} {key!r} failed: {cause}")
