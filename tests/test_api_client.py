"""
REST 客户端: 信封解包与错误转换（HTTP 层用 Mock 代替）
"""
from unittest.mock import Mock

import pytest
import requests

from notebook.api_client import AIGateway, GatewayError, SessionGateway


def fake_response(status_code=200, body=None, json_error=False):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def http_returning(response):
    http = Mock(spec=requests.Session)
    http.request.return_value = response
    return http


class TestSessionGateway:

    def test_create_session_unwraps_data(self):
        http = http_returning(fake_response(body={"data": {"id": "s1", "name": "demo"}}))
        gateway = SessionGateway("http://api/api/v1", http=http)
        assert gateway.create_session("demo") == {"id": "s1", "name": "demo"}
        http.request.assert_called_once_with(
            "POST", "http://api/api/v1/sessions", json={"name": "demo"}, timeout=10
        )

    def test_not_found_raises(self):
        http = http_returning(fake_response(404, {"error": {"message": "Session not found", "code": "NOT_FOUND"}}))
        with pytest.raises(GatewayError) as exc:
            SessionGateway("http://api", http=http).list_runs("missing")
        assert exc.value.code == "NOT_FOUND"
        assert exc.value.status_code == 404
        assert exc.value.message == "Session not found"

    def test_non_json_body(self):
        http = http_returning(fake_response(502, json_error=True))
        with pytest.raises(GatewayError) as exc:
            SessionGateway("http://api", http=http).get_session("s1")
        assert exc.value.status_code == 502


class TestAIGateway:

    def test_network_error(self):
        http = Mock(spec=requests.Session)
        http.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(GatewayError) as exc:
            AIGateway("http://api", http=http).detect_model_output("code", "out")
        assert exc.value.code == "NETWORK_ERROR"
        assert exc.value.message == "AI request failed"

    def test_config_error_surfaces(self):
        http = http_returning(fake_response(500, {"error": {"message": "OpenAI API key not configured",
                                                            "code": "CONFIG_ERROR"}}))
        with pytest.raises(GatewayError) as exc:
            AIGateway("http://api", http=http).model_chat({"message": "hi"})
        assert exc.value.code == "CONFIG_ERROR"

    def test_detect_payload_and_timeout(self):
        http = http_returning(fake_response(body={"data": {"detected": False}}))
        assert AIGateway("http://api/", http=http).detect_model_output("c", "s") == {"detected": False}
        http.request.assert_called_once_with(
            "POST", "http://api/ai/detect-model-output", json={"code": "c", "stdout": "s"}, timeout=180
        )
