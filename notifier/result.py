"""
Result types for image resolution and attachment visits.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from notifier.models import Image


class ResolutionStatus(str, Enum):
    """Outcome of resolving the image of one alert."""
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


class VisitSignal(str, Enum):
    """What an attachment visitor wants the iteration to do next."""
    CONTINUE = "continue"
    STOP = "stop"


@dataclass(frozen=True)
class ImageResolution:
    """
    Result of resolving the image of a single alert.

    Attributes:
        status: Whether an image was found, is absent, or the lookup failed
        image: The image when found
        error: The store error when the lookup failed
    """
    status: ResolutionStatus
    image: Optional[Image] = None
    error: Optional[BaseException] = None

    @property
    def found(self) -> bool:
        return self.status == ResolutionStatus.FOUND

    @property
    def absent(self) -> bool:
        return self.status == ResolutionStatus.ABSENT

    @property
    def failed(self) -> bool:
        return self.status == ResolutionStatus.FAILED

    def unwrap(self) -> Optional[Image]:
        """Return the image (None when absent), raising the error if the lookup failed."""
        if self.error is not None:
            raise self.error
        return self.image

    @classmethod
    def of(cls, image: Image) -> "ImageResolution":
        """Create a found result."""
        return cls(status=ResolutionStatus.FOUND, image=image)

    @classmethod
    def none(cls) -> "ImageResolution":
        """Create an absent result."""
        return cls(status=ResolutionStatus.ABSENT)

    @classmethod
    def fail(cls, error: BaseException) -> "ImageResolution":
        """Create a failed result."""
        return cls(status=ResolutionStatus.FAILED, error=error)
