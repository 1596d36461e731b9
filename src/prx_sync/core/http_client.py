"""Shared HTTP client with a fixed timeout and no retry logic."""

from typing import Optional, Dict, Any

import requests

DEFAULT_TIMEOUT = 30
USER_AGENT = "prx-sync/0.1"


class HTTPClient:
    """Thin wrapper around a requests.Session used by every outbound call.

    Every failure is surfaced immediately; whether to abort or continue is
    the caller's decision. Tests swap ``session`` for a fake.

    Args:
        timeout: Request timeout in seconds (default: 30)
        session: Optional pre-built session (connection pooling, tests)
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> requests.Response:
        """Issue a single request.

        Raises:
            requests.RequestException: On any transport-level failure
        """
        return self.session.request(
            method.upper(),
            url,
            headers=headers,
            params=params,
            data=data,
            json=json,
            timeout=self.timeout,
        )

    def get(self, url: str, headers: Optional[Dict[str, str]] = None,
            params: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.request("GET", url, headers=headers, params=params)

    def post(self, url: str, data: Optional[Dict[str, Any]] = None,
             headers: Optional[Dict[str, str]] = None) -> requests.Response:
        return self.request("POST", url, headers=headers, data=data)

    def download(self, url: str, dest_path: str, chunk_size: int = 64 * 1024) -> int:
        """Stream *url* into *dest_path* and return the number of bytes written.

        Raises:
            requests.HTTPError: On HTTP status >= 400
            requests.RequestException: On network errors
        """
        written = 0
        with self.session.get(url, stream=True, timeout=self.timeout) as r:
            r.raise_for_status()
            with open(dest_path, "wb") as fh:
                for chunk in r.iter_content(chunk_size=chunk_size):
                    if chunk:
                        fh.write(chunk)
                        written += len(chunk)
        return written

    def close(self):
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
