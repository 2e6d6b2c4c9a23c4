# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""HTTP client for the passport registry service."""

import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx

import app.config as _config

log = logging.getLogger("passport_registry.client")


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, including '/'."""
    return quote(value, safe="")


class RegistryClientError(Exception):
    """Service returned a non-success HTTP status."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


class RegistryClient:
    """Thin synchronous wrapper over the registry HTTP API.

    Args:
        base_url: Service URL (defaults to ``PASSPORT_REGISTRY_URL``).
        token: Bearer token (defaults to ``PASSPORT_REGISTRY_AUTH_TOKEN``).
        http: Pre-built ``httpx.Client``; used by tests to target an
            in-process app.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ):
        token = _config.AUTH_TOKEN if token is None else token
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        if http is None:
            http = httpx.Client(
                base_url=base_url or _config.REGISTRY_URL,
                timeout=_config.CLIENT_TIMEOUT_SECONDS,
                headers=headers,
            )
        else:
            http.headers.update(headers)
        self._http = http

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RegistryClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = self._http.request(method, path, **kwargs)
        if response.status_code >= 400 and response.status_code != 404:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise RegistryClientError(response.status_code, str(detail))
        return response

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def call(self, method: str, args: Sequence[Any], sender: str) -> dict:
        """Submit one transaction as its own block; returns the block response."""
        response = self._request(
            "POST", f"/calls/{_segment(method)}", json={"args": list(args), "sender": sender},
        )
        return response.json()

    def submit_block(self, txs: Sequence[dict]) -> dict:
        response = self._request("POST", "/blocks", json={"txs": list(txs)})
        return response.json()

    def advance(self, blocks: Optional[int] = None, to_height: Optional[int] = None) -> dict:
        response = self._request(
            "POST", "/chain/advance", json={"blocks": blocks, "to_height": to_height},
        )
        return response.json()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def chain(self) -> dict:
        return self._request("GET", "/chain").json()

    def authority(self, identity: str) -> dict:
        return self._request("GET", f"/authorities/{_segment(identity)}").json()

    def passport(self, passport_id: str) -> Optional[dict]:
        response = self._request("GET", f"/passports/{_segment(passport_id)}")
        if response.status_code == 404:
            return None
        return response.json()

    def validity(self, passport_id: str) -> dict:
        return self._request("GET", f"/passports/{_segment(passport_id)}/validity").json()

    def holder_passport(self, holder: str) -> dict:
        return self._request("GET", f"/holders/{_segment(holder)}/passport").json()
