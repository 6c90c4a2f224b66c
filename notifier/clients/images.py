"""
Image Store Clients

Look up images taken for alerts by their token.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from notifier.clients.bigquery import BigQueryClient, get_bigquery_client
from notifier.config import Settings, get_settings
from notifier.context import NotificationContext
from notifier.errors import ImageNotFound, ImagesUnavailable
from notifier.models import Image

logger = logging.getLogger(__name__)


class ImageStore(Protocol):
    """
    Protocol for image stores.

    get_image raises ImageNotFound when there is no (unexpired) image for the
    token and ImagesUnavailable when the store cannot serve images at all.
    Any other exception is a real failure.
    """

    def get_image(self, ctx: NotificationContext, token: str) -> Image:
        ...


class BigQueryImageStore:
    """
    Image store backed by the BigQuery images table.

    Usage:
        store = BigQueryImageStore(bq_client)
        image = store.get_image(ctx, token)
    """

    def __init__(self, bq: BigQueryClient):
        self.bq = bq

    def get_image(self, ctx: NotificationContext, token: str) -> Image:
        ctx.check()

        sql = (
            "SELECT token, path, url, created_at, expires_at "
            f"FROM `{self.bq.table_id(self.bq.images_table)}` "
            "WHERE token = @token "
            "LIMIT 1"
        )
        rows = self.bq.query(sql, {"token": token}, timeout=ctx.remaining())
        if not rows:
            raise ImageNotFound(f"no image with token {token}")

        image = _image_from_row(rows[0])
        if image.expired(datetime.now(timezone.utc)):
            logger.debug(f"Image {token} expired at {image.expires_at}")
            raise ImageNotFound(f"image with token {token} has expired")

        return image


class NoOpImageStore:
    """Image store used when images are disabled; every lookup is unavailable."""

    def get_image(self, ctx: NotificationContext, token: str) -> Image:
        raise ImagesUnavailable()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _image_from_row(row: dict) -> Image:
    return Image(
        token=row["token"],
        path=row.get("path") or "",
        url=row.get("url") or "",
        created_at=_as_utc(row.get("created_at")),
        expires_at=_as_utc(row.get("expires_at")),
    )


def get_image_store(settings: Optional[Settings] = None) -> ImageStore:
    """
    Get the image store for the given settings.

    Args:
        settings: Optional settings (uses get_settings() if not provided)

    Returns:
        BigQueryImageStore, or NoOpImageStore if BQ not configured
    """
    if settings is None:
        settings = get_settings()

    if not settings.is_bq_configured():
        logger.info("BigQuery not configured, images are unavailable")
        return NoOpImageStore()

    return BigQueryImageStore(get_bigquery_client(settings))
