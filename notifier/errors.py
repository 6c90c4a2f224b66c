"""
Error types for image resolution, delivery and receiver validation.
"""

from typing import Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from notifier.models import ReceiverConfig, ReceiverRef


class NotifierError(Exception):
    """Base class for notifier errors."""


class ImageStoreError(NotifierError):
    """Base class for errors reported by an image store."""


class ImageNotFound(ImageStoreError):
    """The image does not exist (or has expired)."""

    def __init__(self, message: str = "image not found"):
        super().__init__(message)


class ImagesUnavailable(ImageStoreError):
    """Images are not available, e.g. the feature is disabled."""

    def __init__(self, message: str = "images are unavailable"):
        super().__init__(message)


class DeadlineExceeded(NotifierError, TimeoutError):
    """The caller's deadline or a fixed operation timeout expired."""


class DeliveryError(NotifierError):
    """The webhook endpoint answered with a non-2xx status code."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"failed to send HTTP request - status code {status_code}")


class ReceiverValidationError(NotifierError):
    """
    A receiver configuration failed validation.

    Attributes:
        reason: What failed
        receiver: Name and type of the receiver being validated
        cause: Underlying error, if any (also set as __cause__)
    """

    def __init__(
        self,
        reason: str,
        receiver: Union["ReceiverRef", "ReceiverConfig"],
        cause: Optional[BaseException] = None,
    ):
        self.reason = reason
        self.receiver = receiver
        self.cause = cause
        self.__cause__ = cause
        super().__init__(reason)

    def __str__(self) -> str:
        name = ""
        if self.receiver.name:
            name = f'"{self.receiver.name}" '

        s = f'failed to validate receiver {name}of type "{self.receiver.type}": {self.reason}'
        if self.cause is not None:
            return f"{s}: {self.cause}"

        return s

    def unwrap(self) -> Optional[BaseException]:
        return self.cause
