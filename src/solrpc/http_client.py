from typing import Any, Dict

import requests
from requests.adapters import HTTPAdapter

from .errors import MalformedResponseError


class HttpClient:
    """Pooled JSON POST transport. Transport errors are raised as-is and never retried."""

    def __init__(self, timeout: float, user_agent: str) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        adapter = HTTPAdapter(max_retries=0, pool_connections=4, pool_maxsize=16)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)
        self.session.headers.update({"User-Agent": user_agent, "Content-Type": "application/json"})

    def post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        response = self.session.post(url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError("RPC response was not valid JSON", payload=response.text) from exc

    def close(self) -> None:
        self.session.close()
