"""
运行结果解析
tier 1: 固定前缀的标记行 (MODEL_TYPE: / ACCURACY: / CONFUSION_MATRIX: ...)，确定性、不联网
tier 2: 把 (code, stdout) 交给 AI Gateway 的 detect-model-output 做启发式识别
两种策略实现同一个接口 extract(code, stdout) -> DetectedModel | None
"""
import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

from notebook.models import DatasetInfo, DetectedMetrics, DetectedModel

logger = logging.getLogger(__name__)

_NUMERIC_PREFIXES = {
    "ACCURACY:": "accuracy",
    "PRECISION:": "precision",
    "RECALL:": "recall",
    "F1_SCORE:": "f1_score",
}
_JSON_PREFIXES = {
    "DATASET_INFO:": "dataset_info",
    "CONFUSION_MATRIX:": "confusion_matrix",
    "DATA_PREVIEW:": "_preview",
    "DATA_STATS:": "_stats",
    "FEATURE_DISTRIBUTIONS:": "_distributions",
}

_R2_PATTERN = re.compile(r"R(?:\^?2|²)\s*(?:score)?[:\s]+(-?\d+(?:\.\d+)?)", re.IGNORECASE)
_ACCURACY_PATTERN = re.compile(r"(?:accuracy|score)[:\s]+(\d*\.?\d+)", re.IGNORECASE)


@dataclass
class DataPreview:
    columns: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    stats: dict[str, dict] = field(default_factory=dict)
    distributions: dict[str, list[dict]] = field(default_factory=dict)


@dataclass
class ParsedRunResult:
    dataset_info: Optional[dict] = None
    model_type: Optional[str] = None
    accuracy: Optional[float] = None
    precision: Optional[float] = None
    recall: Optional[float] = None
    f1_score: Optional[float] = None
    confusion_matrix: Optional[list[list[int]]] = None
    data_preview: Optional[DataPreview] = None

    @property
    def has_model_signal(self) -> bool:
        return any(v is not None for v in (
            self.model_type, self.accuracy, self.precision,
            self.recall, self.f1_score, self.confusion_matrix,
        ))


def _parse_number(payload: str) -> float:
    value = float(payload)
    if not math.isfinite(value):
        raise ValueError(f"Non-finite value: {payload}")
    return value


def parse_tagged_output(stdout: str) -> ParsedRunResult:
    """逐行扫描标记行；某一行 JSON / 数值不合法时跳过该行，继续解析"""
    result = ParsedRunResult()
    blocks: dict[str, Any] = {}

    for line in stdout.splitlines():
        line = line.rstrip("\r")
        try:
            if line.startswith("MODEL_TYPE:"):
                model_type = line[len("MODEL_TYPE:"):].strip()
                if model_type:
                    result.model_type = model_type
                continue

            for prefix, attr in _NUMERIC_PREFIXES.items():
                if line.startswith(prefix):
                    setattr(result, attr, _parse_number(line[len(prefix):].strip()))
                    break
            else:
                for prefix, attr in _JSON_PREFIXES.items():
                    if line.startswith(prefix):
                        blocks[attr] = json.loads(line[len(prefix):].strip())
                        break
        except ValueError:
            logger.debug("Skipping malformed tagged line: %.80s", line)

    info = blocks.get("dataset_info")
    if isinstance(info, dict):
        result.dataset_info = info

    matrix = blocks.get("confusion_matrix")
    if isinstance(matrix, list) and matrix and all(isinstance(row, list) for row in matrix):
        result.confusion_matrix = matrix

    preview = blocks.get("_preview") if isinstance(blocks.get("_preview"), dict) else {}
    stats = blocks.get("_stats") if isinstance(blocks.get("_stats"), dict) else {}
    distributions = blocks.get("_distributions") if isinstance(blocks.get("_distributions"), dict) else {}
    columns = preview.get("columns") or []
    if columns or stats:
        result.data_preview = DataPreview(
            columns=list(columns),
            rows=list(preview.get("rows") or []),
            stats=stats,
            distributions=distributions,
        )
    return result


def extract_accuracy(stdout: str) -> Optional[float]:
    """
    兜底: 从原始输出里找 "R^2 score: 0.94" / "Accuracy: 0.94" 这类文字
    R² 优先
    """
    if not stdout:
        return None
    match = _R2_PATTERN.search(stdout) or _ACCURACY_PATTERN.search(stdout)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


class ModelExtractor(Protocol):
    def extract(self, code: str, stdout: str) -> Optional[DetectedModel]:
        ...


class TaggedLineExtractor:
    """tier 1"""

    def extract(self, code: str, stdout: str) -> Optional[DetectedModel]:
        parsed = parse_tagged_output(stdout)
        if not parsed.has_model_signal:
            return None

        try:
            matrix = [[int(v) for v in row] for row in parsed.confusion_matrix] if parsed.confusion_matrix else None
        except (TypeError, ValueError):
            matrix = None

        try:
            dataset_info = DatasetInfo.from_api(parsed.dataset_info)
        except (TypeError, ValueError):
            dataset_info = None

        summary_bits = [parsed.model_type or "Model"]
        if parsed.accuracy is not None:
            summary_bits.append(f"accuracy {parsed.accuracy:.4f}")
        return DetectedModel(
            detected=True,
            model_type=parsed.model_type,
            metrics=DetectedMetrics(
                accuracy=parsed.accuracy,
                precision=parsed.precision,
                recall=parsed.recall,
                f1_score=parsed.f1_score,
            ),
            confusion_matrix=matrix,
            dataset_info=dataset_info,
            summary=" with ".join(summary_bits),
        )


class RemoteDetector:
    """
    tier 2，尽力而为
    网络 / 服务端错误 (GatewayError) 原样抛出，由调用方决定怎么处理；
    返回内容结构不对时当作未识别
    """

    def __init__(self, ai_gateway):
        self.ai_gateway = ai_gateway

    def extract(self, code: str, stdout: str) -> Optional[DetectedModel]:
        if not stdout.strip():
            return None
        payload = self.ai_gateway.detect_model_output(code=code, stdout=stdout)
        try:
            detected = DetectedModel.from_api(payload)
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Unparseable detection payload: %s", e)
            return None
        return detected if detected.detected else None


class OutputParser:
    """按顺序尝试各个 extractor，返回第一个识别成功的结果"""

    def __init__(self, extractors: Sequence[ModelExtractor]):
        self.extractors = list(extractors)

    @classmethod
    def tagged_only(cls) -> "OutputParser":
        return cls([TaggedLineExtractor()])

    @classmethod
    def with_remote(cls, ai_gateway) -> "OutputParser":
        return cls([TaggedLineExtractor(), RemoteDetector(ai_gateway)])

    def parse(self, code: str, stdout: str) -> Optional[DetectedModel]:
        for extractor in self.extractors:
            detected = extractor.extract(code, stdout)
            if detected is not None and detected.detected:
                return detected
        return None
