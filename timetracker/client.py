"""HTTP client for the Time Tracker API, as used by the dashboard."""

import os
from typing import Any, Dict, List, Optional

import httpx

DEFAULT_API_URL = "http://localhost:3000"


class ApiError(Exception):
    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"API Error: {status_code} - {payload}")


class TimeTrackerClient:
    """
    Thin wrapper over the REST API that unwraps the `data` envelope.

    Pass an existing httpx.Client (for example FastAPI's TestClient) to reuse
    its transport; otherwise one is created for base_url, falling back to
    TIMETRACKER_API_URL.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        if client is None:
            base_url = base_url or os.getenv("TIMETRACKER_API_URL", DEFAULT_API_URL)
            client = httpx.Client(base_url=base_url, timeout=timeout)
        self._client = client

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TimeTrackerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = self._client.request(method, path, **kwargs)
        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            raise ApiError(response.status_code, payload)
        return response.json()

    def list_entries(
        self,
        project: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = {}
        if project:
            params["project"] = project
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        return self._request("GET", "/api/entries", params=params)["data"]

    def get_entry(self, entry_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/entries/{entry_id}")["data"]

    def create_entry(
        self,
        start_time: str,
        end_time: str,
        project: str,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"start_time": start_time, "end_time": end_time, "project": project}
        if notes is not None:
            body["notes"] = notes
        return self._request("POST", "/api/entries", json=body)["data"]

    def update_entry(self, entry_id: int, **fields: Any) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/entries/{entry_id}", json=fields)["data"]

    def delete_entry(self, entry_id: int) -> None:
        self._request("DELETE", f"/api/entries/{entry_id}")

    def get_stats(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/stats")["data"]

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")
