"""
Data model for alerts, stored images, receivers and delivery requests.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from notifier.errors import ReceiverValidationError

# Annotation that links an alert to an image in the image store
IMAGE_TOKEN_ANNOTATION = "__alertImageToken__"

ALERT_NAME_LABEL = "alertname"

COLOR_ALERT_FIRING = "#D63232"
COLOR_ALERT_RESOLVED = "#36a64f"

# FNV-1a 64-bit, as used for Alertmanager label set fingerprints
_FNV_OFFSET64 = 14695981039346656037
_FNV_PRIME64 = 1099511628211
_SEPARATOR = 0xFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _fnv_add(h: int, data: bytes) -> int:
    for byte in data:
        h ^= byte
        h = (h * _FNV_PRIME64) & _MASK64
    return h


class AlertStatus(str, Enum):
    """Status of an alert at notification time."""
    FIRING = "firing"
    RESOLVED = "resolved"


@dataclass
class Alert:
    """
    An alert as handed over by a notification provider.

    Attributes:
        labels: Identifying key/value labels
        annotations: Descriptive key/value annotations
        starts_at: When the alert started firing
        ends_at: When the alert resolved (None while firing)
        generator_url: Link back to the alert source
    """
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    generator_url: str = ""

    @property
    def name(self) -> str:
        return self.labels.get(ALERT_NAME_LABEL, "")

    @property
    def image_token(self) -> str:
        """Image token from the annotations, empty if there is none."""
        return self.annotations.get(IMAGE_TOKEN_ANNOTATION, "")

    def fingerprint(self) -> str:
        """Hex fingerprint of the label set."""
        h = _FNV_OFFSET64
        for name in sorted(self.labels):
            h = _fnv_add(h, name.encode("utf-8"))
            h = _fnv_add(h, bytes([_SEPARATOR]))
            h = _fnv_add(h, self.labels[name].encode("utf-8"))
            h = _fnv_add(h, bytes([_SEPARATOR]))
        return f"{h:016x}"

    def resolved(self, now: Optional[datetime] = None) -> bool:
        if self.ends_at is None:
            return False
        now = now or datetime.now(tz=self.ends_at.tzinfo)
        return self.ends_at <= now

    def status(self, now: Optional[datetime] = None) -> AlertStatus:
        if self.resolved(now):
            return AlertStatus.RESOLVED
        return AlertStatus.FIRING

    def __str__(self) -> str:
        s = f"{self.name}[{self.fingerprint()[:7]}]"
        if self.resolved():
            return s + "[resolved]"
        return s + "[active]"


@dataclass(frozen=True)
class Image:
    """
    An image held by the image store.

    Attributes:
        token: Opaque token that alerts reference the image by
        path: Local file path of the image, if stored on disk
        url: Public URL of the image, if uploaded
        created_at: When the image was taken
        expires_at: When the store will discard the image
    """
    token: str
    path: str = ""
    url: str = ""
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def has_path(self) -> bool:
        return self.path != ""

    def has_url(self) -> bool:
        return self.url != ""

    def expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(tz=self.expires_at.tzinfo)
        return self.expires_at <= now


@dataclass(frozen=True)
class DeliveryConfig:
    """
    Request body and optional basic-auth credentials for one webhook send.
    """
    body: bytes = b""
    user: str = ""
    password: str = ""

    @property
    def has_basic_auth(self) -> bool:
        return bool(self.user) and bool(self.password)


@dataclass(frozen=True)
class ReceiverRef:
    """Name and type of a receiver."""
    name: str = ""
    type: str = ""


@dataclass
class ReceiverConfig:
    """
    Configuration of a notification receiver (contact point).

    Attributes:
        uid: Unique identifier of the receiver
        name: Display name (may be empty)
        type: Provider type, e.g. "discord" or "webhook"
        disable_resolve_message: Skip notifications for resolved alerts
        settings: Provider settings
        secure_settings: Decrypted secret settings (passwords, tokens)
    """
    uid: str = ""
    name: str = ""
    type: str = ""
    disable_resolve_message: bool = False
    settings: dict[str, Any] = field(default_factory=dict)
    secure_settings: dict[str, str] = field(default_factory=dict)

    @property
    def ref(self) -> ReceiverRef:
        return ReceiverRef(name=self.name, type=self.type)

    def get(self, key: str, default: Any = None) -> Any:
        """Look a setting up, secure settings first."""
        if self.secure_settings.get(key):
            return self.secure_settings[key]
        return self.settings.get(key, default)

    def require(self, key: str) -> Any:
        """
        Get a setting that must be present and non-empty.

        Raises:
            ReceiverValidationError: If the setting is missing
        """
        value = self.get(key)
        if value is None or value == "":
            raise ReceiverValidationError(f"could not find {key} in settings", self.ref)
        return value


def alert_status_color(status: AlertStatus) -> str:
    """Attachment color for an alert status."""
    if status == AlertStatus.FIRING:
        return COLOR_ALERT_FIRING
    return COLOR_ALERT_RESOLVED
