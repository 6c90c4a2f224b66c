"""
Notifier Logger with BigQuery Audit Trail

Provides key/value structured logging that writes to the console and,
for warnings and errors, to BigQuery.
"""

import logging
from typing import Any, Optional

from notifier.context import NotificationContext
from notifier.clients.bigquery import BigQueryClient, get_bigquery_client


def _format_value(value: Any) -> str:
    text = str(value)
    if text == "" or any(c.isspace() for c in text):
        return f'"{text}"'
    return text


class NotifierLogger:
    """
    Key/value structured logger with BigQuery audit trail.

    Usage:
        logger = NotifierLogger(ctx, bq_client)
        alert_logger = logger.new(alert=str(alert))
        alert_logger.warning("failed to get image with token", token=token, error=e)
        logger.debug("sending HTTP request succeeded", url=url, status_code=200)
    """

    def __init__(
        self,
        ctx: NotificationContext,
        bq_client: Optional[BigQueryClient] = None,
        name: str = "sentinel-notifier",
        fields: Optional[dict] = None,
    ):
        self.ctx = ctx
        self.bq_client = bq_client
        self.fields = dict(fields or {})
        self._logger = logging.getLogger(name)

        # Ensure we have a handler
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            self._logger.addHandler(handler)
            self._logger.setLevel(logging.INFO)

    def new(self, **fields: Any) -> "NotifierLogger":
        """Create a child logger that adds `fields` to every entry."""
        return NotifierLogger(
            self.ctx,
            self.bq_client,
            name=self._logger.name,
            fields={**self.fields, **fields},
        )

    def _log(
        self,
        level: int,
        message: str,
        event_type: str = "log",
        audit: bool = False,
        fields: Optional[dict] = None,
    ) -> None:
        """Internal log method with optional BQ audit."""
        data = {**self.fields, **(fields or {})}

        if self._logger.isEnabledFor(level):
            prefix = f"[{self.ctx.request_id[:8]}]"
            if self.ctx.receiver:
                prefix += f" [receiver={self.ctx.receiver}]"
            pairs = " ".join(f"{k}={_format_value(v)}" for k, v in data.items())
            full_message = f"{prefix} {message}"
            if pairs:
                full_message += f" {pairs}"
            self._logger.log(level, full_message)

        # Write to BigQuery if auditing
        if audit and self.bq_client:
            audit_data = {"message": message}
            audit_data.update({k: str(v) for k, v in data.items()})
            self.bq_client.log_audit(self.ctx, event_type, audit_data)

    def debug(self, message: str, **fields: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, fields=fields)

    def info(self, message: str, audit: bool = False, **fields: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, event_type="info", audit=audit, fields=fields)

    def warning(self, message: str, audit: bool = True, **fields: Any) -> None:
        """Log warning message (audited by default)."""
        self._log(logging.WARNING, message, event_type="warning", audit=audit, fields=fields)

    def error(self, message: str, audit: bool = True, **fields: Any) -> None:
        """Log error message (audited by default)."""
        self._log(logging.ERROR, message, event_type="error", audit=audit, fields=fields)


def get_logger(
    ctx: NotificationContext,
    bq_client: Optional[BigQueryClient] = None,
    **fields: Any,
) -> NotifierLogger:
    """
    Create a NotifierLogger for the given context.

    Args:
        ctx: Notification context
        bq_client: Optional BigQuery client (auto-created if not provided)
        **fields: Key/value pairs added to every entry

    Returns:
        Configured NotifierLogger
    """
    if bq_client is None:
        bq_client = get_bigquery_client()

    return NotifierLogger(ctx, bq_client, fields=fields)
