from typing import Optional

import requests

from simplerequest.common.errors import ErrorKind
from simplerequest.http.cookies import load_cookie_file, save_cookie_file
from simplerequest.interfaces import IHttpClient

MAX_REDIRECTS = 5


class RequestsHttpClient(IHttpClient):
    """
    Thin adapter over requests.Session that satisfies IHttpClient.

    One instance is one transport handle: it is opened for a single
    request and closed right after. When ``cookie_path`` is given the
    session starts from the cookies stored in that file and writes its
    cookies back to the same file on close.
    """

    def __init__(
        self,
        cookie_path: Optional[str] = None,
        session: Optional[requests.Session] = None,
        max_redirects: int = MAX_REDIRECTS,
    ):
        self.session = session or requests.Session()
        self.session.max_redirects = max_redirects
        # No proxies, .netrc credentials or CA bundles from the environment
        self.session.trust_env = False
        self.cookie_path = cookie_path
        self._closed = False
        if self.cookie_path:
            load_cookie_file(self.session.cookies, self.cookie_path)

    def request(self, method: str, url: str, **kwargs):
        return self.session.request(method=method, url=url, **kwargs)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self.cookie_path:
                save_cookie_file(self.session.cookies, self.cookie_path)
        finally:
            self.session.close()


def classify_transport_error(exc: Exception) -> ErrorKind:
    """Map a requests exception onto the ErrorKind reported to callers."""
    # SSLError and ConnectTimeout are both ConnectionError subclasses.
    if isinstance(exc, requests.exceptions.SSLError):
        return ErrorKind.SSL
    if isinstance(exc, requests.exceptions.Timeout):
        return ErrorKind.TIMEOUT
    if isinstance(exc, requests.exceptions.TooManyRedirects):
        return ErrorKind.REDIRECT
    if isinstance(
        exc,
        (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
            requests.exceptions.URLRequired,
        ),
    ):
        return ErrorKind.INVALID_URL
    if isinstance(exc, requests.exceptions.ConnectionError):
        return ErrorKind.CONNECTION
    return ErrorKind.UNKNOWN
