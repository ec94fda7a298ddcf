"""
后端 REST 客户端
成功返回信封里的 data；错误信封 / 非 JSON / 网络错误统一抛 GatewayError
不做自动重试
"""
import logging
import os
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

API_URL = os.environ.get("LOOPYTER_API_URL", "http://localhost:8000/api/v1")
DEFAULT_TIMEOUT = 10
# AI 调用可能要等很久
AI_TIMEOUT = 180


class GatewayError(Exception):
    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __str__(self):
        return f"[{self.code}] {self.message}" if self.code else self.message


class ApiClient:

    def __init__(self, base_url: str = API_URL, http: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, json_data: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.http.request(method, url, json=json_data, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise GatewayError("AI request failed" if path.startswith("/ai/") else "Request failed",
                               code="NETWORK_ERROR") from e

        try:
            body = r.json()
        except ValueError as e:
            raise GatewayError(f"Invalid response from server ({r.status_code})",
                               status_code=r.status_code) from e

        if not isinstance(body, dict):
            raise GatewayError("Invalid response from server", status_code=r.status_code)
        if "error" in body or not r.ok:
            error = body.get("error") or {}
            raise GatewayError(
                error.get("message") or f"Request failed ({r.status_code})",
                code=error.get("code"),
                status_code=r.status_code,
            )
        return body.get("data")

    def get(self, path: str) -> Any:
        return self._request("GET", path)

    def post(self, path: str, json_data: Optional[dict] = None) -> Any:
        return self._request("POST", path, json_data or {})


class SessionGateway(ApiClient):

    def create_session(self, name: Optional[str] = None) -> dict:
        return self.post("/sessions", {"name": name} if name else {})

    def get_session(self, session_id: str) -> dict:
        return self.get(f"/sessions/{session_id}")

    def save_run(self, run: dict) -> dict:
        return self.post("/runs", run)

    def list_runs(self, session_id: str) -> list[dict]:
        return self.get(f"/runs/{session_id}") or []


class AIGateway(ApiClient):

    def __init__(self, base_url: str = API_URL, http: Optional[requests.Session] = None,
                 timeout: float = AI_TIMEOUT):
        super().__init__(base_url, http, timeout)

    def improve(self, payload: dict) -> dict:
        return self.post("/ai/improve", payload)

    def analyze_data(self, payload: dict) -> dict:
        return self.post("/ai/analyze-data", payload)

    def analyze_model(self, payload: dict) -> dict:
        return self.post("/ai/analyze-model", payload)

    def detect_model_output(self, code: str, stdout: str) -> dict:
        return self.post("/ai/detect-model-output", {"code": code, "stdout": stdout})

    def analyze_detected_model(self, payload: dict) -> dict:
        return self.post("/ai/analyze-detected-model", payload)

    def generate_model_experiments(self, payload: dict) -> dict:
        return self.post("/ai/generate-model-experiments", payload)

    def clean_data(self, payload: dict) -> dict:
        return self.post("/ai/clean-data", payload)

    def model_chat(self, payload: dict) -> dict:
        return self.post("/ai/model-chat", payload)


def check_health(base_url: str = API_URL) -> bool:
    """/health 挂在根路径上，不在 api 前缀下"""
    root = base_url.rstrip("/")
    if root.endswith("/api/v1"):
        root = root[: -len("/api/v1")]
    try:
        r = requests.get(f"{root}/health", timeout=5)
        return r.ok
    except requests.exceptions.RequestException:
        return False
