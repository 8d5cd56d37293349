"""fetcher.py — Raw fetches routed through the configured proxy."""

import requests

DEFAULT_TIMEOUT = 30
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
}


class ProxyFetcher:
    """
    Fetch arbitrary URLs, either directly or through a raw-fetch proxy.

    With a proxy base such as "https://proxy.example.workers.dev", a request for
    URL u becomes GET {base}/api/raw?url=<u>. Non-2xx responses raise
    requests.HTTPError. There are no retries here; callers decide what a
    failure means.
    """

    def __init__(self, base_url: str | None = None, session: requests.Session | None = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, url: str) -> requests.Response:
        if self.base_url:
            response = self.session.get(
                f"{self.base_url}/api/raw", params={"url": url},
                headers=HEADERS, timeout=self.timeout,
            )
        else:
            response = self.session.get(url, headers=HEADERS, timeout=self.timeout)
        response.raise_for_status()
        return response

    def fetch_bytes(self, url: str) -> bytes:
        return self._get(url).content

    def fetch_text(self, url: str) -> str:
        return self._get(url).text

    def __repr__(self) -> str:
        return f"ProxyFetcher(base_url={self.base_url!r})"
