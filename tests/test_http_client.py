import logging

import pytest
import requests
from requests.cookies import RequestsCookieJar, create_cookie

from simplerequest.common.errors import ErrorKind
from simplerequest.http.client import MAX_REDIRECTS, RequestsHttpClient, classify_transport_error
from simplerequest.http.cookies import load_cookie_file, save_cookie_file


def test_client_caps_redirects_and_closes_once():
    session = requests.Session()
    client = RequestsHttpClient(session=session)

    assert session.max_redirects == MAX_REDIRECTS == 5

    client.close()
    client.close()
    assert client._closed is True


def test_client_round_trips_cookies_through_file(tmp_path):
    path = str(tmp_path / "cookies.txt")

    with RequestsHttpClient(cookie_path=path) as client:
        client.session.cookies.set_cookie(create_cookie("session", "abc123", domain="example.test", path="/"))

    with RequestsHttpClient(cookie_path=path) as client:
        assert client.session.cookies.get("session", domain="example.test") == "abc123"


def test_client_without_cookie_path_writes_nothing(tmp_path):
    with RequestsHttpClient() as client:
        client.session.cookies.set_cookie(create_cookie("session", "abc123", domain="example.test"))

    assert list(tmp_path.iterdir()) == []


def test_load_cookie_file_missing_file_is_empty(tmp_path):
    jar = RequestsCookieJar()

    assert load_cookie_file(jar, str(tmp_path / "absent.txt")) == 0
    assert len(jar) == 0


def test_load_cookie_file_ignores_malformed_file(tmp_path, caplog):
    path = tmp_path / "cookies.txt"
    path.write_text("this is not a cookie file\n", encoding="utf-8")
    jar = RequestsCookieJar()

    with caplog.at_level(logging.WARNING):
        assert load_cookie_file(jar, str(path)) == 0

    assert "unreadable cookie file" in caplog.text


def test_save_cookie_file_reports_unwritable_path(tmp_path):
    jar = RequestsCookieJar()
    jar.set_cookie(create_cookie("a", "1", domain="example.test"))

    assert save_cookie_file(jar, str(tmp_path / "missing-dir" / "cookies.txt")) == -1
    assert save_cookie_file(jar, str(tmp_path / "cookies.txt")) == 1


@pytest.mark.parametrize(
    "exc, kind",
    [
        (requests.exceptions.SSLError("bad cert"), ErrorKind.SSL),
        (requests.exceptions.ConnectTimeout("slow connect"), ErrorKind.TIMEOUT),
        (requests.exceptions.ReadTimeout("slow read"), ErrorKind.TIMEOUT),
        (requests.exceptions.TooManyRedirects("loop"), ErrorKind.REDIRECT),
        (requests.exceptions.MissingSchema("no scheme"), ErrorKind.INVALID_URL),
        (requests.exceptions.InvalidURL("bad url"), ErrorKind.INVALID_URL),
        (requests.exceptions.ConnectionError("refused"), ErrorKind.CONNECTION),
        (requests.exceptions.RequestException("other"), ErrorKind.UNKNOWN),
    ],
)
def test_classify_transport_error(exc, kind):
    assert classify_transport_error(exc) is kind


def test_client_ignores_environment_settings():
    client = RequestsHttpClient()
    try:
        assert client.session.trust_env is False
    finally:
        client.close()
