# tests/test_http_session.py
from cleanread.http_session import build_session, get_default_headers


def test_default_headers_look_like_a_browser(monkeypatch):
    for name in ("HTTP_UA", "HTTP_ACCEPT", "HTTP_ACCEPT_LANGUAGE"):
        monkeypatch.delenv(name, raising=False)

    headers = get_default_headers()

    assert headers["User-Agent"].startswith("Mozilla/5.0")
    assert headers["Accept"].startswith("text/html")
    assert headers["Accept-Language"] == "en-US,en;q=0.5"
    assert headers["Upgrade-Insecure-Requests"] == "1"


def test_headers_can_be_overridden(monkeypatch):
    monkeypatch.setenv("HTTP_UA", "CleanReadTest/1.0")
    assert get_default_headers()["User-Agent"] == "CleanReadTest/1.0"


def test_session_makes_a_single_attempt():
    session = build_session(max_redirects=3)
    try:
        adapter = session.get_adapter("https://example.com")
        assert adapter.max_retries.total == 0
        assert session.max_redirects == 3
        assert session.headers["User-Agent"].startswith("Mozilla/5.0")
    finally:
        session.close()
