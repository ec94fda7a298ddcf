"""
Notebook 侧的数据结构
Cell / 识别出的模型结果 / 实验
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class CellKind(str, Enum):
    CODE = "code"
    MARKDOWN = "markdown"


class ExperimentStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"Expected a number, got {value!r}")
    return float(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _int_matrix(value: Any) -> Optional[list[list[int]]]:
    if not isinstance(value, list) or not value:
        return None
    if not all(isinstance(row, list) for row in value):
        return None
    return [[int(round(float(v))) for v in row] for row in value]


@dataclass
class DetectedMetrics:
    accuracy: Optional[float] = None
    precision: Optional[float] = None
    recall: Optional[float] = None
    f1_score: Optional[float] = None
    loss: Optional[float] = None
    custom_metrics: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: dict) -> "DetectedMetrics":
        custom = payload.get("customMetrics") or {}
        if not isinstance(custom, dict):
            raise TypeError("customMetrics must be an object")
        return cls(
            accuracy=_optional_float(payload.get("accuracy")),
            precision=_optional_float(payload.get("precision")),
            recall=_optional_float(payload.get("recall")),
            f1_score=_optional_float(payload.get("f1Score")),
            loss=_optional_float(payload.get("loss")),
            custom_metrics={str(k): float(v) for k, v in custom.items()},
        )

    def to_api(self) -> dict:
        return {
            "accuracy": self.accuracy,
            "precision": self.precision,
            "recall": self.recall,
            "f1Score": self.f1_score,
            "loss": self.loss,
            "customMetrics": dict(self.custom_metrics),
        }


@dataclass
class DatasetInfo:
    rows: Optional[int] = None
    columns: Optional[int] = None
    features: Optional[list[str]] = None

    @classmethod
    def from_api(cls, payload: Optional[dict]) -> Optional["DatasetInfo"]:
        if not isinstance(payload, dict):
            return None
        features = payload.get("features")
        return cls(
            rows=_optional_int(payload.get("rows")),
            columns=_optional_int(payload.get("columns")),
            features=[str(f) for f in features] if isinstance(features, list) else None,
        )


@dataclass
class DetectedModel:
    """从一次运行的 stdout 里识别出的模型结果（不持久化）"""
    detected: bool
    model_type: Optional[str] = None
    metrics: DetectedMetrics = field(default_factory=DetectedMetrics)
    confusion_matrix: Optional[list[list[int]]] = None
    dataset_info: Optional[DatasetInfo] = None
    summary: str = ""

    @classmethod
    def from_api(cls, payload: dict) -> "DetectedModel":
        """解析 detect-model-output 的返回；结构不对时抛 TypeError / ValueError"""
        if not isinstance(payload, dict):
            raise TypeError("Detection payload must be an object")
        metrics = payload.get("metrics") or {}
        if not isinstance(metrics, dict):
            raise TypeError("metrics must be an object")
        model_type = payload.get("modelType")
        return cls(
            detected=bool(payload.get("detected")),
            model_type=str(model_type) if model_type else None,
            metrics=DetectedMetrics.from_api(metrics),
            confusion_matrix=_int_matrix(payload.get("confusionMatrix")),
            dataset_info=DatasetInfo.from_api(payload.get("datasetInfo")),
            summary=payload.get("summary") or "",
        )

    @property
    def effective_accuracy(self) -> Optional[float]:
        """排行用的分数: accuracy 缺失时退回 customMetrics 里的 r2 / R2"""
        if self.metrics.accuracy is not None:
            return self.metrics.accuracy
        custom = self.metrics.custom_metrics
        if custom.get("r2") is not None:
            return custom["r2"]
        return custom.get("R2")


@dataclass
class Cell:
    id: str
    kind: CellKind
    content: str = ""
    output: Optional[str] = None
    error: Optional[str] = None
    is_running: bool = False
    detected_model: Optional[DetectedModel] = None

    @property
    def is_code(self) -> bool:
        return self.kind == CellKind.CODE


@dataclass
class DetectedRun:
    """排行榜里的一行，对应一个识别出模型的 cell"""
    cell_id: str
    model_type: Optional[str]
    accuracy: float
    precision: Optional[float]
    recall: Optional[float]
    f1_score: Optional[float]
    confusion_matrix: Optional[list[list[int]]]
    summary: str
    dataset_info: Optional[DatasetInfo] = None


@dataclass
class Experiment:
    name: str
    code: str
    description: str = ""
    model_type: Optional[str] = None
    status: ExperimentStatus = ExperimentStatus.PENDING
    accuracy: Optional[float] = None
    output: Optional[str] = None
    error: Optional[str] = None
    cell_id: Optional[str] = None
    # False 表示跑完了但没有找到任何分数，accuracy 记为 0
    metrics_found: bool = False

    @classmethod
    def from_suggestion(cls, payload: dict) -> "Experiment":
        return cls(
            name=payload["name"],
            code=payload["code"],
            description=payload.get("description") or "",
            model_type=payload.get("modelType"),
        )

    @property
    def is_finished(self) -> bool:
        return self.status in (ExperimentStatus.COMPLETED, ExperimentStatus.FAILED)
