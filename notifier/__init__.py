"""
Sentinel Notifier

Image attachment resolution and webhook delivery for alert notifications.
"""

from notifier.context import NotificationContext
from notifier.config import Settings, get_settings
from notifier.errors import (
    DeadlineExceeded,
    DeliveryError,
    ImageNotFound,
    ImagesUnavailable,
    NotifierError,
    ReceiverValidationError,
)
from notifier.models import Alert, DeliveryConfig, Image, ReceiverConfig, ReceiverRef
from notifier.result import ImageResolution, ResolutionStatus, VisitSignal

__all__ = [
    "NotificationContext",
    "Settings",
    "get_settings",
    "NotifierError",
    "ImageNotFound",
    "ImagesUnavailable",
    "DeadlineExceeded",
    "DeliveryError",
    "ReceiverValidationError",
    "Alert",
    "Image",
    "DeliveryConfig",
    "ReceiverConfig",
    "ReceiverRef",
    "ImageResolution",
    "ResolutionStatus",
    "VisitSignal",
]
