"""
LLM 调用封装
所有 AI 接口都走 OpenAI chat completions 的 JSON 模式，这里负责：
配置检查 → 请求 → 取出 content → 解析 JSON
"""
import json
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from config import settings
from services.errors import AIError, ConfigError

logger = logging.getLogger(__name__)


class LLMClient:
    """同步 OpenAI 客户端；不做自动重试，失败由用户手动重新触发"""

    def __init__(self, api_key: str, model: str = "gpt-4o", timeout: Optional[float] = None):
        self.model = model
        self._client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        failure_message: str = "Failed to process AI request",
    ) -> dict:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error("OpenAI API error: %s", e)
            raise AIError(failure_message) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIError("No response from AI")

        return parse_json_content(content)


def parse_json_content(content: str) -> dict:
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse AI response: %s", content[:500])
        raise AIError("Invalid AI response format") from e
    if not isinstance(parsed, dict):
        raise AIError("Invalid AI response format")
    return parsed


def get_llm_client() -> LLMClient:
    """FastAPI 依赖注入: 没有配置 key 时每个 AI 接口都返回 CONFIG_ERROR"""
    if not settings.openai_api_key:
        raise ConfigError("OpenAI API key not configured")
    return LLMClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout,
    )
