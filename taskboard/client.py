"""Thin HTTP client for the Taskboard API.

Keeps the signed-in session token and a local copy of the task list, the
way the web front end does, so scripts and tests can drive the API without
hand-building requests.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


@dataclass(frozen=True)
class SessionToken:
    """Bearer token handed out by register/login."""
    value: str

    def header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.value}"}


class TaskboardClient:
    def __init__(self, http: httpx.Client, token: Optional[SessionToken] = None):
        self.http = http
        self.token = token
        self.user: Optional[Dict[str, Any]] = None
        self.tasks: List[Dict[str, Any]] = []

    @classmethod
    def connect(cls, base_url: str, timeout: float = 30.0) -> "TaskboardClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        headers = self.token.header() if self.token else {}
        response = self.http.request(method, path, json=json, headers=headers)
        if response.is_error:
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            raise ApiError(response.status_code, message or f"HTTP error! status: {response.status_code}")
        return response.json()

    def _start_session(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.token = SessionToken(data["token"])
        self.user = data["user"]
        return data

    # Auth

    def register(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        data = self._request(
            "POST", "/auth/register",
            json={"email": email, "password": password, "fullName": full_name},
        )
        return self._start_session(data)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        return self._start_session(data)

    def logout(self) -> None:
        self.token = None
        self.user = None
        self.tasks = []

    # Tasks

    def fetch_tasks(self) -> List[Dict[str, Any]]:
        self.tasks = self._request("GET", "/tasks") or []
        return self.tasks

    def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        parent_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"title": title}
        if description is not None:
            body["description"] = description
        if parent_id is not None:
            body["parentId"] = parent_id
        if status is not None:
            body["status"] = status

        task = self._request("POST", "/tasks", json=body)
        self.tasks.insert(0, task)
        if parent_id is not None:
            for parent in self.tasks:
                if parent["id"] == parent_id:
                    parent.setdefault("subtasks", []).append(task)
        return task

    def update_task(self, task_id: str, **updates: Any) -> Dict[str, Any]:
        task = self._request("PUT", f"/tasks/{task_id}", json=updates)
        self.tasks = [task if t["id"] == task_id else t for t in self.tasks]
        for parent in self.tasks:
            parent["subtasks"] = [task if s["id"] == task_id else s for s in parent.get("subtasks", [])]
        return task

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")
        # Children go with the parent on the server
        self.tasks = [t for t in self.tasks if t["id"] != task_id and t.get("parentId") != task_id]
        for parent in self.tasks:
            parent["subtasks"] = [s for s in parent.get("subtasks", []) if s["id"] != task_id]

    def generate_subtasks(self, title: str, description: Optional[str] = None) -> List[Dict[str, str]]:
        body = {"title": title}
        if description:
            body["description"] = description
        return self._request("POST", "/ai/generate-subtasks", json=body)["subtasks"]

    # Admin

    def fetch_all_tasks(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/tasks/all")

    def fetch_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/users")

    def fetch_user_tasks(self, user_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/users/{user_id}/tasks")
