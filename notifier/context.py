"""
Notification Context for threading identity and deadlines through a delivery.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Optional
import time
import uuid

from notifier.errors import DeadlineExceeded


@dataclass(frozen=True)
class NotificationContext:
    """
    Context object that flows through image resolution and HTTP delivery.

    Attributes:
        request_id: Unique identifier for this notification attempt
        receiver: Name of the receiver being notified
        triggered_at: Timestamp when the attempt was initiated
        deadline: Monotonic clock value after which work must stop (None = no deadline)
        clock: Monotonic clock used to evaluate the deadline
    """
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    receiver: str = ""
    triggered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    deadline: Optional[float] = None
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)

    def with_timeout(self, seconds: float) -> "NotificationContext":
        """
        Derive a child context that expires after `seconds`.

        The child never outlives its parent: its deadline is whichever of the
        two comes first.
        """
        deadline = self.clock() + seconds
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return replace(self, deadline=deadline)

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None if there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self.clock())

    @property
    def expired(self) -> bool:
        return self.deadline is not None and self.clock() >= self.deadline

    def check(self) -> None:
        """Raise DeadlineExceeded if the deadline has passed."""
        if self.expired:
            raise DeadlineExceeded(f"context deadline exceeded [{self.request_id[:8]}]")

    def to_audit_dict(self) -> dict:
        """Convert context to dict for audit logging."""
        return {
            "request_id": self.request_id,
            "receiver": self.receiver,
            "triggered_at": self.triggered_at.isoformat(),
        }

    @classmethod
    def for_receiver(cls, receiver: str, timeout: Optional[float] = None, **kwargs) -> "NotificationContext":
        """Create context for a single receiver notification."""
        ctx = cls(receiver=receiver, **kwargs)
        if timeout is not None:
            ctx = ctx.with_timeout(timeout)
        return ctx


def background() -> NotificationContext:
    """Context with no deadline and no receiver."""
    return NotificationContext()
