"""
一个用户的 notebook 工作区
把执行器、cell、排行榜、批量实验和两个 REST 客户端串起来，
Streamlit 页面只调用这里的方法
"""
import json
import logging
from typing import Optional

from notebook.api_client import AIGateway, SessionGateway
from notebook.cells import CellStore
from notebook.data_profile import (
    build_analyze_data_request,
    build_clean_data_request,
    build_data_context,
    profile_csv,
)
from notebook.executor import ExecutionResult, Executor
from notebook.experiments import ExperimentOrchestrator, ProgressCallback
from notebook.models import CellKind, Experiment
from notebook.output_parser import OutputParser
from notebook.results import RunRegistry

logger = logging.getLogger(__name__)

MAX_CHAT_HISTORY = 10


class NotebookWorkspace:

    def __init__(self, sessions: SessionGateway, ai: AIGateway,
                 executor: Optional[Executor] = None, parser: Optional[OutputParser] = None):
        self.sessions = sessions
        self.ai = ai
        self.executor = executor or Executor()
        self.cells = CellStore(self.executor, parser or OutputParser.with_remote(ai))
        self.saved_runs: list[dict] = []
        self.registry = RunRegistry(self.cells, saved_runs_source=lambda: self.saved_runs)
        self.orchestrator = ExperimentOrchestrator(self.cells, self.registry)

        self.session: Optional[dict] = None
        self.dataset_content: Optional[str] = None
        self.dataset_profile: Optional[dict] = None
        self.ml_recommendations: Optional[dict] = None
        self.chat_history: list[dict] = []
        self.model_insight: Optional[dict] = None
        self.model_analysis: Optional[dict] = None

    @property
    def session_id(self) -> Optional[str]:
        return self.session["id"] if self.session else None

    @property
    def dataset_file_name(self) -> Optional[str]:
        return self.executor.current_file_name

    def start(self, session_name: Optional[str] = None) -> dict:
        """预热执行器并创建一个新 session"""
        self.executor.initialize()
        return self.new_session(session_name)

    def new_session(self, name: Optional[str] = None) -> dict:
        self.session = self.sessions.create_session(name)
        self.saved_runs = []
        logger.info("Session %s created", self.session_id)
        return self.session

    # ---- 数据集 ----

    def load_dataset(self, content: str, file_name: str) -> dict:
        self.executor.load_dataset(content, file_name)
        self.dataset_content = content
        self.dataset_profile = profile_csv(content)
        self.ml_recommendations = None
        return self.dataset_profile

    def _require_profile(self) -> dict:
        if self.dataset_profile is None:
            raise ValueError("Upload a dataset first")
        return self.dataset_profile

    def analyze_data(self) -> dict:
        result = self.ai.analyze_data(build_analyze_data_request(self._require_profile()))
        self.ml_recommendations = result.get("mlRecommendations")
        return result

    def clean_data(self, user_feedback: Optional[str] = None) -> dict:
        return self.ai.clean_data(build_clean_data_request(self._require_profile(), user_feedback))

    # ---- cell ----

    def run_cell(self, cell_id: str) -> Optional[ExecutionResult]:
        return self.cells.run_cell(cell_id)

    def run_all_cells(self) -> list[ExecutionResult]:
        return self.cells.run_all_cells()

    # ---- 对话生成模型 ----

    def build_model(self, message: str) -> tuple[dict, str]:
        """
        model-chat 生成代码，插入为新的 code cell 并立即运行

        Returns:
            (AI 回复, 新 cell 的 id)
        """
        payload = {
            "message": message,
            "dataContext": build_data_context(self._require_profile(), self.dataset_file_name),
            "conversationHistory": self.chat_history[-MAX_CHAT_HISTORY:],
        }
        if self.ml_recommendations:
            payload["mlRecommendations"] = self.ml_recommendations

        reply = self.ai.model_chat(payload)
        self.chat_history.append({"role": "user", "content": message})
        self.chat_history.append({"role": "assistant", "content": reply["response"]})

        cell_id = self.cells.add_cell_with_content(CellKind.CODE, reply["code"])
        self.cells.run_cell(cell_id)
        return reply, cell_id

    # ---- 模型分析与实验 ----

    def analyze_latest_model(self) -> Optional[dict]:
        """分析排在 notebook 最后的那个模型，返回的实验作为新一批 pending 实验"""
        latest = self.registry.latest_run()
        if latest is None:
            return None
        cell = self.cells.get_cell(latest.cell_id)
        result = self.ai.analyze_detected_model({
            "modelType": latest.model_type,
            "metrics": cell.detected_model.metrics.to_api(),
            "summary": latest.summary,
            "code": cell.content,
            "dataFileName": self.dataset_file_name,
        })
        self.model_insight = result.get("insight")
        self.orchestrator.load(Experiment.from_suggestion(e) for e in result.get("experiments", []))
        return result

    def analyze_run(self, cell_id: str) -> dict:
        """
        对排行榜上的某一行做 analyze-model：优缺点 + 特征工程实验
        featureExperiments 作为新一批 pending 实验
        """
        detected = self.registry.detected_run_for_cell(cell_id)
        if detected is None:
            raise ValueError("No detected model in this cell")
        cell = self.cells.get_cell(cell_id)
        info = detected.dataset_info
        profile = self.dataset_profile or {}

        features = info.features if info and info.features else profile.get("columns", [])
        rows = info.rows if info and info.rows is not None else profile.get("rowCount")
        columns = info.columns if info and info.columns is not None else (
            len(profile["columns"]) if profile.get("columns") else None
        )
        result = self.ai.analyze_model({
            "modelType": detected.model_type or "Unknown",
            "accuracy": detected.accuracy,
            "features": features,
            "confusionMatrix": detected.confusion_matrix,
            "code": cell.content,
            "datasetRows": rows,
            "datasetColumns": columns,
        })
        self.model_analysis = result
        self.orchestrator.load(Experiment.from_suggestion(e) for e in result.get("featureExperiments", []))
        logger.info("Run in %s analyzed, %d feature experiments loaded",
                    cell_id, len(result.get("featureExperiments", [])))
        return result

    def suggest_experiments(self, target_column: Optional[str] = None,
                            task_type: Optional[str] = None) -> dict:
        best = self.registry.best_run()
        payload = {
            "dataFileName": self.dataset_file_name,
            "columns": self.dataset_profile["columns"] if self.dataset_profile else [],
            "targetColumn": target_column,
            "taskType": task_type,
            "currentAccuracy": best.accuracy if best else None,
            "currentModelType": best.model_type if best else None,
        }
        result = self.ai.generate_model_experiments(payload)
        self.orchestrator.load(Experiment.from_suggestion(e) for e in result.get("experiments", []))
        return result

    def run_experiments(self, on_progress: Optional[ProgressCallback] = None) -> list[Experiment]:
        return self.orchestrator.run_all(on_progress=on_progress)

    def stop_experiments(self):
        self.orchestrator.stop()

    def improve_latest(self) -> Optional[dict]:
        """
        把最新的模型和历史 runs 发给 improve，
        返回的改进代码插入为新 cell（不自动运行）
        """
        latest = self.registry.latest_run()
        if latest is None or self.session_id is None:
            return None
        cell = self.cells.get_cell(latest.cell_id)
        info = latest.dataset_info
        result = self.ai.improve({
            "sessionId": self.session_id,
            "latestRun": {
                "accuracy": latest.accuracy,
                "modelType": latest.model_type or "Unknown",
                "datasetRows": info.rows if info else None,
                "datasetColumns": info.columns if info else None,
                "datasetFeatures": json.dumps(info.features) if info and info.features else None,
            },
            "code": cell.content,
            "allRuns": [
                {"name": r["name"], "accuracy": r["accuracy"], "modelType": r["modelType"]}
                for r in self.saved_runs
            ],
        })
        improved = result["improvedExperiment"]
        result["cellId"] = self.cells.add_cell_with_content(
            CellKind.CODE, f"# {improved['name']}\n{improved['code']}", after_id=latest.cell_id
        )
        return result

    # ---- 持久化 ----

    def save_run_from_cell(self, cell_id: str, name: Optional[str] = None,
                           is_improved: bool = False, explanation: Optional[str] = None) -> dict:
        """把某个识别出模型的 cell 存成 Run；features / 混淆矩阵以 JSON 字符串保存"""
        if self.session_id is None:
            raise ValueError("No active session")
        detected = self.registry.detected_run_for_cell(cell_id)
        if detected is None:
            raise ValueError("No detected model in this cell")
        cell = self.cells.get_cell(cell_id)
        info = detected.dataset_info

        run = self.sessions.save_run({
            "sessionId": self.session_id,
            "name": name or detected.model_type or "Untitled Run",
            "code": cell.content,
            "accuracy": detected.accuracy,
            "modelType": detected.model_type or "Unknown",
            "precision": detected.precision,
            "recall": detected.recall,
            "f1Score": detected.f1_score,
            "datasetRows": info.rows if info else None,
            "datasetColumns": info.columns if info else None,
            "datasetFeatures": json.dumps(info.features) if info and info.features else None,
            "confusionMatrix": json.dumps(detected.confusion_matrix) if detected.confusion_matrix else None,
            "stdout": cell.output,
            "error": cell.error,
            "isImproved": is_improved,
            "explanation": explanation,
        })
        logger.info("Run %s saved (accuracy=%.4f)", run["id"], run["accuracy"])
        self.refresh_saved_runs()
        return run

    def refresh_saved_runs(self) -> list[dict]:
        if self.session_id is None:
            self.saved_runs = []
        else:
            self.saved_runs = self.sessions.list_runs(self.session_id)
        return self.saved_runs

    def export_model(self, var_name: str = "model") -> Optional[bytes]:
        return self.executor.export_model(var_name)
