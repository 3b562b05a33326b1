from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from requests.exceptions import ConnectionError, ReadTimeout


@dataclass
class HTTPClient:
    user_agent: str
    timeout_s: int = 20
    tries: int = 1
    backoff_s: float = 0.8
    headers: Dict[str, str] = field(default_factory=dict)
    session: Optional[requests.Session] = None

    def __post_init__(self) -> None:
        self.s = self.session if self.session is not None else requests.Session()
        self.s.headers.update(
            {
                "User-Agent": self.user_agent,
                "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
                **self.headers,
            }
        )

    def _with_retries(self, send) -> requests.Response:
        last_err: Optional[Exception] = None
        for attempt in range(self.tries):
            try:
                r = send()
                r.raise_for_status()
                return r
            except (ReadTimeout, ConnectionError) as e:
                last_err = e
                if attempt + 1 < self.tries:
                    time.sleep(self.backoff_s * (2**attempt))
        raise last_err if last_err else RuntimeError("HTTP request failed")

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, timeout_s: Optional[int] = None) -> Any:
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        r = self._with_retries(lambda: self.s.get(url, params=params, timeout=timeout))
        return r.json()

    def post_json(self, url: str, payload: Dict[str, Any], timeout_s: Optional[int] = None) -> Any:
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        r = self._with_retries(lambda: self.s.post(url, json=payload, timeout=timeout))
        return r.json()
