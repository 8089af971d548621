"""
REST client for the remote task service.

One method per resource operation. Every non-success response is turned
into a ``RemoteError`` subclass; nothing is retried here.
"""

from typing import Any, Callable, Dict, List, Optional
import logging

import requests

from ..core.exceptions import (
    AuthenticationError,
    RateLimitError,
    RemoteAPIError,
    RemoteConnectionError,
    RemoteNotFoundError,
)
from ..core.models import (
    DEFAULT_API_BASE_URL,
    RemoteLabel,
    RemoteProject,
    RemoteTask,
)

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_AFTER = 60

TokenProvider = Callable[[], str]


def _retry_after(response: requests.Response) -> int:
    value = response.headers.get("Retry-After")
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER


class RemoteClient:
    """Typed wrapper over the remote task API."""

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        endpoint: str,
        resource: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Issue one request and map the response status to an outcome.

        Returns:
            Decoded JSON payload, or None for an empty body
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self.token_provider()}"}

        self.logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteConnectionError(f"{method} {url} failed: {exc}") from exc

        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(f"Remote rejected the API token ({status})")
        if status == 404:
            raise RemoteNotFoundError(resource or endpoint)
        if status == 429:
            raise RateLimitError(_retry_after(response))
        if not 200 <= status < 300:
            raise RemoteAPIError(status, response.text[:200])

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteAPIError(status, f"Invalid JSON in response: {exc}") from exc

    def _list(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect every item of a list endpoint, following cursors."""
        items: List[Dict[str, Any]] = []
        query = dict(params or {})
        while True:
            payload = self._request("GET", endpoint, params=query or None)
            if payload is None:
                return items
            if isinstance(payload, list):
                items.extend(payload)
                return items
            if not isinstance(payload, dict):
                raise RemoteAPIError(200, f"Unexpected response for {endpoint}")

            items.extend(payload.get("results", []))
            cursor = payload.get("next_cursor")
            if not cursor:
                return items
            query["cursor"] = cursor

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def list_tasks(self, project_id: Optional[str] = None) -> List[RemoteTask]:
        params = {"project_id": project_id} if project_id else None
        return [RemoteTask.from_dict(item) for item in self._list("tasks", params)]

    def get_task(self, task_id: str) -> RemoteTask:
        data = self._request("GET", f"tasks/{task_id}", resource=f"task {task_id}")
        return RemoteTask.from_dict(data or {})

    def create_task(self, payload: Dict[str, Any]) -> RemoteTask:
        data = self._request("POST", "tasks", json_data=payload)
        if not data or not data.get("id"):
            raise RemoteAPIError(200, "Create task returned no id")
        return RemoteTask.from_dict(data)

    def update_task(self, task_id: str, payload: Dict[str, Any]) -> Optional[RemoteTask]:
        data = self._request("POST", f"tasks/{task_id}", resource=f"task {task_id}", json_data=payload)
        return RemoteTask.from_dict(data) if data else None

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"tasks/{task_id}", resource=f"task {task_id}")

    def close_task(self, task_id: str) -> None:
        self._request("POST", f"tasks/{task_id}/close", resource=f"task {task_id}")

    def reopen_task(self, task_id: str) -> None:
        self._request("POST", f"tasks/{task_id}/reopen", resource=f"task {task_id}")

    # ------------------------------------------------------------------
    # Labels and projects
    # ------------------------------------------------------------------
    def list_labels(self) -> List[RemoteLabel]:
        return [RemoteLabel.from_dict(item) for item in self._list("labels")]

    def create_label(self, name: str) -> RemoteLabel:
        data = self._request("POST", "labels", json_data={"name": name})
        if not data or not data.get("id"):
            raise RemoteAPIError(200, "Create label returned no id")
        return RemoteLabel.from_dict(data)

    def list_projects(self) -> List[RemoteProject]:
        return [RemoteProject.from_dict(item) for item in self._list("projects")]

    def create_project(self, name: str) -> RemoteProject:
        data = self._request("POST", "projects", json_data={"name": name})
        if not data or not data.get("id"):
            raise RemoteAPIError(200, "Create project returned no id")
        return RemoteProject.from_dict(data)

    def verify_credentials(self) -> bool:
        """Check the token with a cheap authenticated call."""
        try:
            self._request("GET", "projects")
        except AuthenticationError:
            return False
        return True
