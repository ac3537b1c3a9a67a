# Overview: HTTP client for the HomeBake API with bearer auth and retry on transient failures.

"""
HomeBake API client.

Transport errors and 502/503/504 responses are retried with exponential
backoff (backoff_base * 2**attempt, capped at backoff_cap). Any other
error response raises ApiError straight away.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx


logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = (502, 503, 504)


class ApiError(Exception):
    """Error response (or exhausted retries) from the HomeBake API."""

    def __init__(self, status_code: Optional[int], message: str, payload: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class HomeBakeClient:
    """
    Thin wrapper around httpx.Client.

    Pass `transport` to talk to an in-process app (httpx.WSGITransport)
    or a mock transport in tests.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
        backoff_cap: float = 8.0,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self.token = token
        self.current_user: Optional[Dict] = None
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self._sleep = sleep

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def backoff_delay(self, attempt: int) -> float:
        return min(self.backoff_cap, self.backoff_base * (2 ** attempt))

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        attempt = 0
        while True:
            try:
                response = self.client.request(method, path, params=params, json=json, headers=self._headers())
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    raise ApiError(None, f"{method} {path} failed after {attempt + 1} attempts: {exc}") from exc
                delay = self.backoff_delay(attempt)
                logger.warning("%s %s transport error (%s); retrying in %.2fs", method, path, exc, delay)
                self._sleep(delay)
                attempt += 1
                continue

            if response.status_code in RETRY_STATUS_CODES and attempt < self.max_retries:
                delay = self.backoff_delay(attempt)
                logger.warning("%s %s returned %s; retrying in %.2fs", method, path, response.status_code, delay)
                self._sleep(delay)
                attempt += 1
                continue

            if response.is_error:
                raise _error_from(response)
            return response

    def get(self, path: str, params: Optional[Dict] = None) -> Any:
        return self.request("GET", path, params=params).json()

    def post(self, path: str, json: Optional[Dict] = None) -> Any:
        return self.request("POST", path, json=json or {}).json()

    def patch(self, path: str, json: Optional[Dict] = None) -> Any:
        return self.request("PATCH", path, json=json or {}).json()

    def delete(self, path: str, params: Optional[Dict] = None) -> Any:
        return self.request("DELETE", path, params=params).json()

    # -- Auth --

    def login(self, email: str, password: str) -> Dict:
        data = self.post("/api/auth/login", json={"email": email, "password": password})
        self.token = data.get("token")
        self.current_user = data.get("user")
        return data

    def logout(self) -> None:
        if not self.token:
            return
        try:
            self.post("/api/auth/logout")
        finally:
            self.token = None
            self.current_user = None

    def me(self) -> Dict:
        return self.get("/api/auth/me")

    # -- Catalog and production --

    def list_bread_types(self, include_inactive: bool = False) -> list:
        params = {"include_inactive": "true" if include_inactive else None}
        return self.get("/api/bread-types", params=params)["items"]

    def list_batches(self, shift: Optional[str] = None, status: Optional[str] = None, date: Optional[str] = None) -> list:
        return self.get("/api/batches", params={"shift": shift, "status": status, "date": date})["items"]

    def create_batch(self, payload: Dict) -> Dict:
        return self.post("/api/batches", json=payload)["batch"]

    def complete_batch(self, batch_id: int, actual_quantity: Optional[int] = None) -> Dict:
        body = {} if actual_quantity is None else {"actual_quantity": actual_quantity}
        return self.post(f"/api/batches/{batch_id}/complete", json=body)["batch"]

    # -- Sales and inventory --

    def record_sale(self, payload: Dict) -> Dict:
        return self.post("/api/sales", json=payload)["sale"]

    def end_shift(self, payload: Dict) -> Dict:
        return self.post("/api/sales/end-shift", json=payload)["report"]

    def shift_inventory(self, shift: str, date: Optional[str] = None) -> Dict:
        return self.get("/api/inventory/shift", params={"shift": shift, "date": date})

    def current_inventory(self) -> Dict:
        return self.get("/api/inventory/current")

    # -- Reports and activity --

    def shift_summary(self, shift: str, date: Optional[str] = None) -> Dict:
        return self.get("/api/reports/shift", params={"shift": shift, "date": date})

    def export_report(self, fmt: str = "csv", **params) -> bytes:
        params["format"] = fmt
        return self.request("GET", "/api/reports/export", params=params).content

    def activity_feed(self, since_id: int = 0, limit: int = 100) -> Dict:
        return self.get("/api/activities/feed", params={"since_id": since_id, "limit": limit})


def _error_from(response: httpx.Response) -> ApiError:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    message = payload.get("error") if isinstance(payload, dict) else None
    return ApiError(response.status_code, message or response.reason_phrase or "Request failed", payload)
