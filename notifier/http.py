"""
HTTP delivery of notification payloads to webhook endpoints.

A single POST per call with a fixed transport policy. Retries are the
caller's business.
"""

import socket
import ssl
import threading
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool
from urllib3.util.ssl_ import create_urllib3_context

from notifier.context import NotificationContext, background
from notifier.logging import NotifierLogger
from notifier.models import DeliveryConfig
from notifier.errors import DeadlineExceeded, DeliveryError

USER_AGENT = "Sentinel-Notifier"
CONTENT_TYPE = "application/json"

# Transport policy shared by all providers
DIAL_TIMEOUT = 30.0
TLS_HANDSHAKE_TIMEOUT = 5.0
REQUEST_TIMEOUT = 30.0

_CHUNK_SIZE = 8192


def _client_ssl_context() -> ssl.SSLContext:
    """TLS client context that lets the server renegotiate."""
    context = create_urllib3_context()
    context.options &= ~getattr(ssl, "OP_NO_RENEGOTIATION", 0)
    return context


# Deadline of the request in flight on this thread, if any
_in_flight = threading.local()


def _shutdown(conn) -> None:
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # already closed
        pass


class _DeadlineWatch:
    """
    Aborts the request in flight on the current thread once its deadline passes.

    When the timer fires, the sockets of the connections used by the request
    are shut down and any blocked read fails.
    """

    def __init__(self, seconds: float):
        self.expired = False
        self._connections = []
        self._lock = threading.Lock()
        self._timer = threading.Timer(seconds, self._abort)
        self._timer.daemon = True

    def __enter__(self) -> "_DeadlineWatch":
        _in_flight.watch = self
        self._timer.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._timer.cancel()
        _in_flight.watch = None

    def track(self, conn) -> None:
        with self._lock:
            self._connections.append(conn)
            expired = self.expired
        if expired:
            _shutdown(conn)

    def _abort(self) -> None:
        with self._lock:
            self.expired = True
            connections = list(self._connections)
        for conn in connections:
            _shutdown(conn)


def _current_watch() -> Optional[_DeadlineWatch]:
    return getattr(_in_flight, "watch", None)


class _WatchedConnectionMixin:
    """Connection that is aborted with the request it serves."""

    def connect(self):
        super().connect()
        watch = _current_watch()
        if watch is not None and watch.expired:
            _shutdown(self)


class _HTTPConnection(_WatchedConnectionMixin, HTTPConnection):
    pass


class _HTTPSConnection(_WatchedConnectionMixin, HTTPSConnection):
    """HTTPS connection whose TLS handshake has its own, shorter timeout."""

    def _new_conn(self):
        sock = super()._new_conn()
        timeout = TLS_HANDSHAKE_TIMEOUT
        if isinstance(self.timeout, (int, float)):
            timeout = min(timeout, self.timeout)
        sock.settimeout(timeout)
        return sock


class _WatchedPoolMixin:
    """Registers every connection it hands out with the request's deadline."""

    def _get_conn(self, timeout=None):
        conn = super()._get_conn(timeout)
        watch = _current_watch()
        if watch is not None:
            watch.track(conn)
        return conn


class _HTTPConnectionPool(_WatchedPoolMixin, HTTPConnectionPool):
    ConnectionCls = _HTTPConnection


class _HTTPSConnectionPool(_WatchedPoolMixin, HTTPSConnectionPool):
    ConnectionCls = _HTTPSConnection


_POOL_CLASSES = {
    "http": _HTTPConnectionPool,
    "https": _HTTPSConnectionPool,
}


class NotifierHTTPAdapter(HTTPAdapter):
    """
    Transport adapter for webhook delivery.

    Allows TLS renegotiation as a client and applies TLS_HANDSHAKE_TIMEOUT to
    the handshake. Never retries.
    """

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = _client_ssl_context()
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = _POOL_CLASSES

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        if proxy in self.proxy_manager or proxy.lower().startswith("socks"):
            return super().proxy_manager_for(proxy, **proxy_kwargs)

        proxy_kwargs["ssl_context"] = _client_ssl_context()
        manager = super().proxy_manager_for(proxy, **proxy_kwargs)
        manager.pool_classes_by_scheme = _POOL_CLASSES
        return manager


def build_session() -> requests.Session:
    """Create a session that uses the webhook transport policy."""
    session = requests.Session()
    adapter = NotifierHTTPAdapter()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _read_body(response: requests.Response, ctx: NotificationContext) -> bytes:
    chunks = []
    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
        ctx.check()
        chunks.append(chunk)
    return b"".join(chunks)


class HTTPSender:
    """
    Sends prepared notification bodies to webhook URLs.

    Usage:
        sender = HTTPSender()
        body = sender.send("https://hooks.example.com/x", DeliveryConfig(body=payload), logger, ctx)

    An injected session is used as is and left open; otherwise a session is
    built and closed for every call.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session

    def send(
        self,
        url: str,
        cfg: DeliveryConfig,
        logger: NotifierLogger,
        ctx: Optional[NotificationContext] = None,
    ) -> bytes:
        """
        POST cfg.body to url once and return the response body.

        Args:
            url: Target webhook URL
            cfg: Body and optional basic-auth credentials
            logger: Logger for the delivery outcome
            ctx: Optional caller context; its deadline also bounds the request

        Returns:
            The body of a 2xx response

        Raises:
            DeliveryError: If the response status is not 2xx
            DeadlineExceeded: If the deadline passes while reading the response
            requests.RequestException: On transport failures, unmodified
        """
        ctx = (ctx or background()).with_timeout(REQUEST_TIMEOUT)

        request = requests.Request(
            "POST",
            url,
            data=cfg.body or None,
            headers={"Content-Type": CONTENT_TYPE, "User-Agent": USER_AGENT},
        )
        if cfg.has_basic_auth:
            request.auth = HTTPBasicAuth(cfg.user, cfg.password)
        prepared = request.prepare()

        session = self._session or build_session()
        try:
            return self._send(session, prepared, logger, ctx)
        finally:
            if self._session is None:
                session.close()

    def _send(
        self,
        session: requests.Session,
        prepared: requests.PreparedRequest,
        logger: NotifierLogger,
        ctx: NotificationContext,
    ) -> bytes:
        ctx.check()
        remaining = ctx.remaining()
        settings = session.merge_environment_settings(prepared.url, {}, None, None, None)

        with _DeadlineWatch(remaining) as watch:
            try:
                response = session.send(
                    prepared,
                    stream=True,
                    timeout=(min(DIAL_TIMEOUT, remaining), remaining),
                    proxies=settings["proxies"],
                    verify=settings["verify"],
                    cert=settings["cert"],
                )
                try:
                    body = _read_body(response, ctx)
                finally:
                    try:
                        response.close()
                    except Exception as e:
                        logger.warning("failed to close response body", error=e)
            except Exception as e:
                if watch.expired:
                    raise DeadlineExceeded(f"HTTP request to {prepared.url} aborted at deadline") from e
                raise

        if watch.expired:
            raise DeadlineExceeded(f"HTTP request to {prepared.url} aborted at deadline")

        if response.status_code // 100 != 2:
            logger.warning(
                "HTTP request failed",
                url=prepared.url,
                status_code=response.status_code,
                body=body.decode("utf-8", errors="replace"),
            )
            raise DeliveryError(response.status_code)

        logger.debug("sending HTTP request succeeded", url=prepared.url, status_code=response.status_code)
        return body


def send_http_request(
    url: str,
    cfg: DeliveryConfig,
    logger: NotifierLogger,
    ctx: Optional[NotificationContext] = None,
) -> bytes:
    """Send cfg.body to url with a fresh sender. See HTTPSender.send."""
    return HTTPSender().send(url, cfg, logger, ctx)


def _clean_path(path: str) -> str:
    """Lexically clean a slash-separated path."""
    if path == "":
        return ""

    rooted = path.startswith("/")
    segments: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments and segments[-1] != "..":
                segments.pop()
            elif not rooted:
                segments.append("..")
            continue
        segments.append(segment)

    cleaned = "/".join(segments)
    if rooted:
        return "/" + cleaned
    return cleaned or "."


def join_url_path(base: str, additional_path: str, logger: NotifierLogger) -> str:
    """
    Append a path to the path of a URL.

    Returns base unchanged if it cannot be parsed.
    """
    try:
        parts = urlsplit(base)
        parts.port  # raises on an invalid port
    except ValueError as e:
        logger.debug("failed to parse URL while joining URL", url=base, error=str(e))
        return base

    joined = "/".join(p for p in (parts.path, additional_path) if p)
    return urlunsplit(parts._replace(path=_clean_path(joined)))
