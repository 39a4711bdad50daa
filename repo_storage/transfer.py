"""
Pollable transfer handles and the blocking wait on them.

The object store returns a handle for every upload or download. Backends
block on it with :func:`wait_for_transfer`, which polls on a short fixed
interval until the transfer reports completion. The wait can be bounded by a
timeout and interrupted through a ``threading.Event``; in both cases the
transfer is cancelled and ``TransferError`` raised.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

from botocore.exceptions import ClientError

from .exceptions import NotFoundError, TransferError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.05

# Error codes S3 (and S3-compatible stores) use for a missing object
MISSING_OBJECT_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class TransferHandle(ABC):
    """An in-flight upload or download."""

    description = "transfer"

    @abstractmethod
    def is_done(self) -> bool:
        """Non-blocking completion check."""
        pass

    @abstractmethod
    def succeeded(self) -> bool:
        """Whether a finished transfer succeeded. Only meaningful once done."""
        pass

    @abstractmethod
    def failure_detail(self) -> Optional[str]:
        """Why a finished transfer failed, or None if it succeeded."""
        pass

    def object_missing(self) -> bool:
        """Whether a finished transfer failed because the remote object does not exist."""
        return False

    def cancel(self) -> None:
        """Request cancellation of the transfer, if supported."""
        pass


class S3TransferHandle(TransferHandle):
    """Handle around a ``TransferFuture`` from the boto3 transfer manager."""

    def __init__(self, future, description: str):
        self._future = future
        self.description = description
        self._resolved = False
        self._error: Optional[BaseException] = None

    def is_done(self) -> bool:
        return self._future.done()

    def _resolve(self) -> None:
        if self._resolved:
            return
        try:
            self._future.result()
        except Exception as e:
            self._error = e
        self._resolved = True

    def succeeded(self) -> bool:
        self._resolve()
        return self._error is None

    def failure_detail(self) -> Optional[str]:
        self._resolve()
        if self._error is None:
            return None
        return f"{type(self._error).__name__}: {self._error}"

    def object_missing(self) -> bool:
        self._resolve()
        if isinstance(self._error, ClientError):
            code = str(self._error.response.get("Error", {}).get("Code", ""))
            return code in MISSING_OBJECT_CODES
        return False

    def cancel(self) -> None:
        self._future.cancel()


def wait_for_transfer(
    handle: TransferHandle,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    timeout: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> None:
    """
    Block until ``handle`` finishes.

    Args:
        handle: Transfer to wait on
        poll_interval: Seconds between completion checks
        timeout: Give up after this many seconds (None = wait indefinitely)
        cancel_event: Abort the wait as soon as this event is set

    Raises:
        NotFoundError: If the transfer failed because the remote object is missing
        TransferError: If the transfer failed, timed out or was cancelled
    """
    deadline = None if timeout is None else time.monotonic() + timeout

    while not handle.is_done():
        if cancel_event is not None and cancel_event.is_set():
            handle.cancel()
            raise TransferError(
                f"{handle.description} cancelled",
                details={"reason": "cancelled"},
            )
        if deadline is not None and time.monotonic() >= deadline:
            handle.cancel()
            raise TransferError(
                f"{handle.description} timed out after {timeout}s",
                details={"reason": "timeout"},
            )
        time.sleep(poll_interval)

    if handle.succeeded():
        logger.debug(f"{handle.description} finished")
        return

    detail = handle.failure_detail() or "unknown error"
    if handle.object_missing():
        raise NotFoundError(
            f"{handle.description} failed: remote object not found",
            details={"reason": detail},
        )
    raise TransferError(f"{handle.description} failed: {detail}", details={"reason": detail})
