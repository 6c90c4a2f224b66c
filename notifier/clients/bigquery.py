"""
BigQuery Client for Image Metadata and Audit Trail

Provides image lookups and audit-aware BigQuery writes with automatic schema handling.
"""

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from notifier.config import Settings, get_settings
from notifier.context import NotificationContext

logger = logging.getLogger(__name__)


class BigQueryClient:
    """
    BigQuery client for image metadata lookups and audit logging.

    Usage:
        client = BigQueryClient(project, dataset)
        rows = client.query(sql, {"token": token}, timeout=0.5)
        client.log_audit(context, "warning", {"message": "HTTP request failed"})
    """

    def __init__(
        self,
        project: str,
        dataset: str = "sentinel_notifier",
        images_table: str = "images",
        audit_table: str = "audit_log",
    ):
        self.project = project
        self.dataset = dataset
        self.images_table = images_table
        self.audit_table = audit_table
        self._client = None

    def _get_client(self):
        """Get or create BigQuery client."""
        if self._client is None:
            try:
                from google.cloud import bigquery
                self._client = bigquery.Client(project=self.project)
            except ImportError:
                logger.warning("google-cloud-bigquery not installed")
                raise
        return self._client

    def table_id(self, table: str) -> str:
        """Get fully qualified table ID."""
        return f"{self.project}.{self.dataset}.{table}"

    def _ensure_dataset(self) -> None:
        """Create dataset if it doesn't exist."""
        try:
            from google.cloud import bigquery as bq
            client = self._get_client()

            dataset_ref = bq.DatasetReference(self.project, self.dataset)
            try:
                client.get_dataset(dataset_ref)
            except Exception:
                dataset = bq.Dataset(dataset_ref)
                dataset.location = "US"
                client.create_dataset(dataset)
                logger.info(f"Created dataset {self.dataset}")
        except Exception as e:
            logger.warning(f"Could not ensure dataset: {e}")

    def _ensure_images_table(self) -> None:
        """Create images table if it doesn't exist."""
        try:
            from google.cloud import bigquery as bq
            client = self._get_client()

            table_id = self.table_id(self.images_table)
            schema = [
                bq.SchemaField("token", "STRING", mode="REQUIRED"),
                bq.SchemaField("path", "STRING"),   # local file path
                bq.SchemaField("url", "STRING"),    # uploaded image URL
                bq.SchemaField("created_at", "TIMESTAMP", mode="REQUIRED"),
                bq.SchemaField("expires_at", "TIMESTAMP"),
            ]

            try:
                client.get_table(table_id)
            except Exception:
                table = bq.Table(table_id, schema=schema)
                table.time_partitioning = bq.TimePartitioning(
                    type_=bq.TimePartitioningType.DAY,
                    field="created_at",
                )
                client.create_table(table)
                logger.info(f"Created images table {table_id}")
        except Exception as e:
            logger.warning(f"Could not ensure images table: {e}")

    def _ensure_audit_table(self) -> None:
        """Create audit table if it doesn't exist."""
        try:
            from google.cloud import bigquery as bq
            client = self._get_client()

            table_id = self.table_id(self.audit_table)
            schema = [
                # Core identifiers
                bq.SchemaField("timestamp", "TIMESTAMP", mode="REQUIRED"),
                bq.SchemaField("request_id", "STRING", mode="REQUIRED"),
                bq.SchemaField("receiver", "STRING"),

                # Event
                bq.SchemaField("event_type", "STRING", mode="REQUIRED"),  # warning, error
                bq.SchemaField("message", "STRING"),

                # Flexible data (log fields)
                bq.SchemaField("data", "JSON"),
            ]

            try:
                client.get_table(table_id)
            except Exception:
                table = bq.Table(table_id, schema=schema)
                table.time_partitioning = bq.TimePartitioning(
                    type_=bq.TimePartitioningType.DAY,
                    field="timestamp",
                )
                client.create_table(table)
                logger.info(f"Created audit table {table_id}")
        except Exception as e:
            logger.warning(f"Could not ensure audit table: {e}")

    def log_audit(
        self,
        ctx: NotificationContext,
        event_type: str,
        data: Optional[dict] = None,
    ) -> bool:
        """
        Log an audit event.

        Args:
            ctx: Notification context
            event_type: Type of event (warning, error)
            data: Event data; "message" is stored in its own column

        Returns:
            True if logged successfully
        """
        try:
            client = self._get_client()
            table_id = self.table_id(self.audit_table)

            data = dict(data or {})
            message = data.pop("message", None)

            row = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "request_id": ctx.request_id,
                "receiver": ctx.receiver,
                "event_type": event_type,
                "message": message,
                "data": json.dumps(data, default=str) if data else None,
            }

            errors = client.insert_rows_json(table_id, [row])
            if errors:
                logger.error(f"BigQuery audit insert errors: {errors}")
                return False

            logger.debug(f"Logged audit event: {event_type}")
            return True

        except Exception as e:
            logger.error(f"Failed to log audit event: {e}")
            return False

    def query(
        self,
        sql: str,
        params: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> list[dict]:
        """
        Execute a query and return results.

        Args:
            sql: SQL query string
            params: Optional query parameters (bound as STRING)
            timeout: Optional seconds to wait for the API call and the results

        Returns:
            List of result rows as dicts
        """
        try:
            from google.cloud import bigquery as bq
            client = self._get_client()

            job_config = None
            if params:
                job_config = bq.QueryJobConfig(
                    query_parameters=[
                        bq.ScalarQueryParameter(k, "STRING", v)
                        for k, v in params.items()
                    ]
                )

            query_job = client.query(sql, job_config=job_config, timeout=timeout)
            results = query_job.result(timeout=timeout)

            return [dict(row) for row in results]

        except Exception as e:
            logger.error(f"Query failed: {e}")
            raise

    def ensure_tables(self) -> None:
        """Ensure all required tables exist."""
        self._ensure_dataset()
        self._ensure_images_table()
        self._ensure_audit_table()


class NoOpBigQueryClient(BigQueryClient):
    """
    No-op BigQuery client for testing/development without BQ access.

    Audit events go to the console only; queries are refused.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(project="noop", dataset="noop")
        logger.info("Using NoOp BigQuery client (no actual BigQuery writes)")

    def _get_client(self):
        return None

    def log_audit(
        self,
        ctx: NotificationContext,
        event_type: str,
        data: Optional[dict] = None,
    ) -> bool:
        logger.info(f"[NOOP AUDIT] {event_type}: {ctx.receiver} [{ctx.request_id[:8]}] - {data}")
        return True

    def query(
        self,
        sql: str,
        params: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> list[dict]:
        logger.debug(f"[NOOP QUERY] Would have executed: {sql[:200]}...")
        raise RuntimeError(
            "BigQuery not configured. Set BQ_PROJECT env var. "
            "Query cannot be executed in NoOp mode."
        )

    def ensure_tables(self) -> None:
        logger.info("[NOOP] Would ensure tables exist")


@lru_cache(maxsize=1)
def get_bigquery_client(settings: Optional[Settings] = None) -> BigQueryClient:
    """
    Get or create a cached BigQuery client instance.

    Args:
        settings: Optional settings (uses get_settings() if not provided)

    Returns:
        BigQueryClient or NoOpBigQueryClient if BQ not configured
    """
    if settings is None:
        settings = get_settings()

    # Use NoOp if BQ not configured or has placeholder value
    if not settings.is_bq_configured():
        logger.info("BigQuery not configured, using NoOp client (audit to console only)")
        return NoOpBigQueryClient()

    client = BigQueryClient(
        project=settings.bq_project,
        dataset=settings.bq_dataset,
        images_table=settings.bq_images_table,
        audit_table=settings.bq_audit_table,
    )

    # Ensure tables exist
    try:
        client.ensure_tables()
    except Exception as e:
        logger.warning(f"Could not ensure BQ tables: {e}")

    return client
