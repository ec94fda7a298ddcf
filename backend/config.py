"""
配置文件
SQLite 数据库 + OpenAI（AI Gateway 后端）
"""
import logging
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    debug: bool = True

    # SQLite 数据库路径
    database_url: str = f"sqlite:///{Path(__file__).parent / 'storage' / 'loopyter.db'}"

    # 所有 REST 接口的版本化前缀
    api_prefix: str = "/api/v1"

    allowed_origins: list[str] = [
        "http://localhost:8501",
        "http://localhost:3000",
    ]

    # LLM provider
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_timeout: float = 120.0

    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


settings = Settings()
