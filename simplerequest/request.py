import logging
import math
import time
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import requests
from requests.auth import HTTPBasicAuth

from simplerequest.common.errors import ErrorKind, InvalidArgumentError
from simplerequest.config import RequestConfig
from simplerequest.http.client import RequestsHttpClient, classify_transport_error
from simplerequest.http.raw import join_raw_response, split_raw_response
from simplerequest.interfaces import IEvidenceCollector, IHttpClient
from simplerequest.models import RequestOutcome

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "GET"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
BODY_CHUNK_SIZE = 1024

PostFields = Union[str, Mapping[str, str]]
HttpClientFactory = Callable[..., IHttpClient]


class Request:
    """
    A single, blocking HTTP request.

    Configure the request through its setters (or a RequestConfig), call
    execute(), then read the result through the getters. Transport failures
    (DNS, refused connections, timeouts, TLS) are never raised from
    execute(): they show up in get_error() and in the returned
    RequestOutcome, with get_http_code() left at 0.

    Example:
        >>> req = Request("https://example.com")
        >>> req.set_timeout(5)
        >>> outcome = req.execute()
        >>> if outcome.ok and req.check_response_for_content("Example"):
        ...     print(req.get_latency())
    """

    def __init__(
        self,
        address: str,
        config: Optional[RequestConfig] = None,
        http_client_factory: Optional[HttpClientFactory] = None,
        evidence: Optional[IEvidenceCollector] = None,
    ):
        if not isinstance(address, str) or not address:
            raise InvalidArgumentError("Address not provided.")

        config = config or RequestConfig()
        self.address = address
        self.user_agent = config.user_agent
        self.connect_timeout = config.timeout.connect
        self.timeout = config.timeout.total
        self.enable_ssl = config.tls.verify
        self.cookies_enabled = config.cookies.enabled
        self.cookie_path = config.cookies.path or ""
        self.request_type = config.method
        self.post_fields = config.post_fields

        self.http_client_factory = http_client_factory or RequestsHttpClient
        self.evidence = evidence

        self._basic_auth: Optional[Tuple[str, str]] = None
        self._outcome: Optional[RequestOutcome] = None

    # Configuration

    @property
    def connect_timeout(self) -> float:
        return self._connect_timeout

    @connect_timeout.setter
    def connect_timeout(self, seconds: float) -> None:
        self._connect_timeout = _validate_timeout("connect_timeout", seconds)

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    def timeout(self, seconds: float) -> None:
        self._timeout = _validate_timeout("timeout", seconds)

    @property
    def basic_auth_credentials(self) -> Optional[str]:
        """Credentials as a single ``username:password`` string."""
        if self._basic_auth is None:
            return None
        return ":".join(self._basic_auth)

    def set_address(self, address: str) -> None:
        if not isinstance(address, str):
            raise InvalidArgumentError(f"Address must be a string, got {type(address).__name__}.")
        self.address = address

    def set_basic_auth_credentials(self, username: str, password: str) -> None:
        if not isinstance(username, str) or not isinstance(password, str):
            raise InvalidArgumentError("Basic auth username and password must be strings.")
        self._basic_auth = (username, password)

    def enable_cookies(self, cookie_path: str) -> None:
        """
        Store cookies in ``cookie_path`` (a Netscape cookies.txt file), which
        is read before and written after every execute().
        """
        if not isinstance(cookie_path, str) or not cookie_path:
            raise InvalidArgumentError("A cookie file path is required to enable cookies.")
        self.cookies_enabled = True
        self.cookie_path = cookie_path

    def disable_cookies(self) -> None:
        self.cookies_enabled = False
        self.cookie_path = ""

    def enable_ssl_verification(self) -> None:
        self.enable_ssl = True

    def disable_ssl_verification(self) -> None:
        self.enable_ssl = False

    def set_connect_timeout(self, seconds: float) -> None:
        self.connect_timeout = seconds

    def set_timeout(self, seconds: float) -> None:
        self.timeout = seconds

    def set_request_type(self, method: Optional[str]) -> None:
        """GET, POST, PUT, DELETE, ... ``None`` falls back to GET."""
        if method is not None and not isinstance(method, str):
            raise InvalidArgumentError(f"Request type must be a string, got {type(method).__name__}.")
        self.request_type = method

    def set_post_fields(self, fields: Optional[PostFields]) -> None:
        """Body for POST requests: a raw string or a mapping to form-encode."""
        if fields is not None and not isinstance(fields, (str, Mapping)):
            raise InvalidArgumentError(f"POST fields must be a string or a mapping, got {type(fields).__name__}.")
        self.post_fields = fields

    # Results

    def get_outcome(self) -> Optional[RequestOutcome]:
        return self._outcome

    def get_response(self) -> str:
        return self._outcome.body if self._outcome else ""

    def get_header(self) -> str:
        return self._outcome.header if self._outcome else ""

    def get_http_code(self) -> int:
        return self._outcome.status_code if self._outcome else 0

    def get_latency(self) -> int:
        return self._outcome.latency_ms if self._outcome else 0

    def get_error(self) -> str:
        return self._outcome.error if self._outcome else ""

    def get_timeout(self) -> float:
        return self.timeout

    def get_connect_timeout(self) -> float:
        return self.connect_timeout

    def check_response_for_content(self, content: str = "") -> bool:
        """
        True when the last response was a 200 with a non-empty body that
        contains ``content``. Call after execute().
        """
        body = self.get_response()
        if self.get_http_code() == 200 and body:
            return content in body
        return False

    # Execution

    def execute(self) -> RequestOutcome:
        method = self.request_type or DEFAULT_METHOD
        kwargs = self._build_request_kwargs(method)
        cookie_path = self.cookie_path if self.cookies_enabled else None

        logger.debug("Executing %s %s", method, self.address)
        response = None
        error = ""
        error_kind: Optional[ErrorKind] = None

        body = b""

        with self.http_client_factory(cookie_path=cookie_path) as client:
            started = time.perf_counter()
            deadline = started + self.timeout if self.timeout else None
            try:
                response = client.request(method, self.address, **kwargs)
                body = _read_body(response, deadline)
            except (requests.RequestException, UnicodeError) as exc:
                error = str(exc) or exc.__class__.__name__
                error_kind = classify_transport_error(exc)
                attached = getattr(exc, "response", None)
                if attached is not None:
                    response = attached
                    body = attached.content or b""
            elapsed = time.perf_counter() - started

        outcome = self._build_outcome(method, response, body, elapsed, error, error_kind)
        self._outcome = outcome

        if outcome.error:
            logger.warning(
                "%s %s failed (%s) after %dms: %s",
                method, self.address, outcome.error_kind.name, outcome.latency_ms, outcome.error,
            )
        else:
            logger.debug("%s %s -> %s in %dms", method, self.address, outcome.status_code, outcome.latency_ms)

        self._record_evidence(outcome, {"User-Agent": self.user_agent})
        return outcome

    def _build_request_kwargs(self, method: str) -> Dict[str, Any]:
        # Header values and credentials go out as UTF-8 bytes; requests would
        # otherwise try latin-1 and fail on anything outside it.
        kwargs: Dict[str, Any] = {
            "headers": {"User-Agent": self.user_agent.encode("utf-8")},
            "timeout": (_transport_timeout(self.connect_timeout), _transport_timeout(self.timeout)),
            "allow_redirects": True,
            "verify": self.enable_ssl,
            "stream": True,
        }
        if self._basic_auth is not None:
            username, password = self._basic_auth
            kwargs["auth"] = HTTPBasicAuth(username.encode("utf-8"), password.encode("utf-8"))

        if method.upper() == "POST" and self.post_fields is not None:
            if isinstance(self.post_fields, str):
                kwargs["data"] = self.post_fields.encode("utf-8")
                kwargs["headers"]["Content-Type"] = FORM_CONTENT_TYPE
            else:
                kwargs["data"] = dict(self.post_fields)
        return kwargs

    def _build_outcome(
        self,
        method: str,
        response,
        content: bytes,
        elapsed: float,
        error: str,
        error_kind: Optional[ErrorKind],
    ) -> RequestOutcome:
        latency_ms = _to_milliseconds(elapsed)
        if response is None:
            return RequestOutcome(
                url=self.address,
                method=method,
                latency_ms=latency_ms,
                error=error,
                error_kind=error_kind,
            )

        hops = list(getattr(response, "history", None) or []) + [response]
        raw, header_size = join_raw_response(hops, content)
        header, body = split_raw_response(raw, header_size)
        return RequestOutcome(
            url=self.address,
            method=method,
            status_code=response.status_code,
            header=header.decode("latin-1"),
            body=_decode_body(body, _declared_charset(response)),
            content=body,
            latency_ms=latency_ms,
            error=error,
            error_kind=error_kind,
        )

    def _record_evidence(self, outcome: RequestOutcome, headers: Dict[str, str]) -> None:
        if self.evidence is None:
            return
        if outcome.ok and outcome.status_code < 400:
            return

        error_type = f"TRANSPORT_{outcome.error_kind.name}" if outcome.error_kind else "HTTP_ERROR"
        if self._basic_auth is not None:
            headers = {**headers, "Authorization": "Basic"}
        self.evidence.log_failed_request(
            method=outcome.method,
            url=outcome.url,
            status_code=outcome.status_code,
            error_type=error_type,
            headers=headers,
            context={"latency_ms": outcome.latency_ms, "error": outcome.error},
            response_body=outcome.content or None,
        )


def _validate_timeout(name: str, seconds: Any) -> float:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise InvalidArgumentError(f"{name} must be a number of seconds, got {type(seconds).__name__}.")
    if seconds < 0:
        raise InvalidArgumentError(f"{name} must be non-negative, got {seconds}.")
    return seconds


def _transport_timeout(seconds: float) -> Optional[float]:
    # 0 disables the limit
    return seconds or None


def _to_milliseconds(seconds: float) -> int:
    return int(math.floor(seconds * 1000 + 0.5))


def _read_body(response, deadline: Optional[float]) -> bytes:
    """
    Read the whole body, giving up once ``deadline`` (a perf_counter value)
    has passed. A single read is still bounded only by the read timeout.
    """
    chunks = []
    for chunk in response.iter_content(chunk_size=BODY_CHUNK_SIZE):
        chunks.append(chunk)
        if deadline is not None and time.perf_counter() > deadline:
            response.close()
            raise requests.exceptions.ReadTimeout("Operation timed out before the response body was complete.")
    return b"".join(chunks)


def _declared_charset(response) -> Optional[str]:
    # requests falls back to ISO-8859-1 for text/* without a charset
    content_type = (getattr(response, "headers", None) or {}).get("Content-Type") or ""
    if "charset=" not in content_type.lower():
        return None
    return getattr(response, "encoding", None)


def _decode_body(body: bytes, encoding: Optional[str]) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
