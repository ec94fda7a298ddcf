"""
Pytest 共享 fixtures
后端用内存 SQLite + 假 LLM；前端核心用真实执行器（不预加载库）
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.database import get_db, init_db
from main import app
from notebook.cells import CellStore
from notebook.executor import ExecutionContext, Executor
from notebook.experiments import ExperimentOrchestrator
from notebook.output_parser import OutputParser
from notebook.results import RunRegistry
from services.errors import AIError
from services.llm_client import get_llm_client


class FakeLLM:
    """代替 LLMClient：按顺序返回预设的 JSON，记录每次调用"""

    def __init__(self, response=None, error=None):
        self.response = response or {}
        self.error = error
        self.calls = []

    def complete_json(self, system_prompt, user_prompt, temperature=0.7,
                      failure_message="Failed to process AI request"):
        self.calls.append({
            "system": system_prompt,
            "user": user_prompt,
            "temperature": temperature,
        })
        if self.error is not None:
            raise AIError(failure_message)
        return self.response


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def client(db_engine, fake_llm):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    # 不用 with，避免触发 startup 去建文件数据库
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(client):
    return client.post("/api/v1/sessions", json={"name": "test"}).json()["data"]["id"]


# ---- notebook 核心 ----

@pytest.fixture
def executor(tmp_path):
    ex = Executor(ExecutionContext(workdir=str(tmp_path)), preload_script="")
    ex.initialize()
    return ex


@pytest.fixture
def cell_store(executor):
    return CellStore(executor, OutputParser.tagged_only())


@pytest.fixture
def registry(cell_store):
    return RunRegistry(cell_store)


@pytest.fixture
def orchestrator(cell_store, registry):
    return ExperimentOrchestrator(cell_store, registry)
