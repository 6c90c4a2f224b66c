"""
Sentinel Notifier Clients Module

External service clients for BigQuery and the image store.
"""

from notifier.clients.bigquery import BigQueryClient, NoOpBigQueryClient, get_bigquery_client
from notifier.clients.images import (
    BigQueryImageStore,
    ImageStore,
    NoOpImageStore,
    get_image_store,
)

__all__ = [
    "BigQueryClient",
    "NoOpBigQueryClient",
    "get_bigquery_client",
    "ImageStore",
    "BigQueryImageStore",
    "NoOpImageStore",
    "get_image_store",
]
