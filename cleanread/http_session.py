import os
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def get_default_headers() -> dict:
    """
    Build browser-like HTTP headers, overridable via environment variables.
    Env vars:
      - HTTP_UA
      - HTTP_ACCEPT_LANGUAGE
      - HTTP_ACCEPT
    """
    ua = os.getenv(
        "HTTP_UA",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124 Safari/537.36",
    )
    accept_language = os.getenv("HTTP_ACCEPT_LANGUAGE", "en-US,en;q=0.5")
    accept = os.getenv(
        "HTTP_ACCEPT",
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    )
    return {
        "User-Agent": ua,
        "Accept-Language": accept_language,
        "Accept": accept,
        "Upgrade-Insecure-Requests": "1",
    }


def build_session(max_redirects: int = 5) -> requests.Session:
    """
    Create a requests Session that makes exactly one attempt per request
    and follows at most ``max_redirects`` redirects.
    Retry policy belongs to the caller of the pipeline.
    """
    retry = Retry(
        total=0,
        read=False,
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.headers.update(get_default_headers())
    session.max_redirects = max_redirects
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
