"""
Image attachment resolution for alert notifications.

Maps each alert to at most one stored image (via the image token annotation)
and hands the images to a provider-supplied visitor.
"""

import os
from typing import BinaryIO, Callable, Optional

from notifier.clients.images import ImageStore
from notifier.context import NotificationContext
from notifier.errors import ImageNotFound, ImagesUnavailable
from notifier.logging import NotifierLogger
from notifier.models import Alert, Image
from notifier.result import ImageResolution, VisitSignal

# Upper bound for a single image store lookup, independent of the caller's deadline
IMAGE_STORE_TIMEOUT = 0.5

# visit(index, image) -> VisitSignal.STOP to end the iteration, CONTINUE/None to go on
ImageVisitor = Callable[[int, Image], Optional[VisitSignal]]


def get_image(
    ctx: NotificationContext,
    logger: NotifierLogger,
    store: ImageStore,
    alert: Alert,
) -> ImageResolution:
    """
    Resolve the image of an alert.

    The result is absent when the alert has no image token, or when the store
    reports the image as not found or images as unavailable. Any other store
    error is logged and returned as a failed result.
    """
    token = alert.image_token
    if not token:
        return ImageResolution.none()

    lookup_ctx = ctx.with_timeout(IMAGE_STORE_TIMEOUT)

    try:
        image = store.get_image(lookup_ctx, token)
    except (ImageNotFound, ImagesUnavailable):
        return ImageResolution.none()
    except Exception as e:
        logger.warning("failed to get image with token", token=token, error=e)
        return ImageResolution.fail(e)

    return ImageResolution.of(image)


def with_stored_images(
    ctx: NotificationContext,
    logger: NotifierLogger,
    store: ImageStore,
    visit: ImageVisitor,
    *alerts: Alert,
) -> None:
    """
    Call `visit` with the index and image of every alert that has one.

    Alerts are processed in order. Alerts without an image are skipped. The
    iteration stops early, without error, when `visit` returns
    VisitSignal.STOP, e.g. once a provider has all the images it can embed.

    Raises:
        Exception: The store error of the first failed lookup, or the error
            raised by `visit`. Remaining alerts are not processed.
    """
    for index, alert in enumerate(alerts):
        alert_logger = logger.new(alert=str(alert))

        resolution = get_image(ctx, alert_logger, store, alert)
        if resolution.failed:
            raise resolution.error
        if not resolution.found:
            continue

        try:
            signal = visit(index, resolution.image)
        except Exception as e:
            alert_logger.error("Failed to attach image to notification", error=e)
            raise

        if signal == VisitSignal.STOP:
            return


def open_image(path: str) -> BinaryIO:
    """
    Open a stored image file for reading.

    The path comes from the image store, not from user input.

    Raises:
        ImageNotFound: If the file does not exist or cannot be accessed
    """
    fp = os.path.normpath(path)
    try:
        return open(fp, "rb")
    except (FileNotFoundError, PermissionError) as e:
        raise ImageNotFound(f"image file {fp} not found") from e
