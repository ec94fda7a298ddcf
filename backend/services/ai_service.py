"""
AI Gateway 服务
每个能力: 构造 prompt → 调用 LLM → 按 schema 校验 / 规范化 → 返回 camelCase dict
校验失败一律转成 AI_ERROR，不把结构不完整的结果透传给前端
"""
import logging
import math
from typing import Any, Type

from pydantic import ValidationError

from schemas import (
    AnalyzeDataRequest, AnalyzeDataResponse,
    AnalyzeDetectedModelRequest, AnalyzeDetectedModelResponse,
    AnalyzeModelRequest, AnalyzeModelResponse,
    CamelModel,
    CleanDataRequest, CleanDataResponse,
    DetectModelOutputRequest, DetectModelOutputResponse,
    GenerateExperimentsRequest, GenerateExperimentsResponse,
    ImproveRequest, ImproveResponse,
    ModelChatRequest, ModelChatResponse,
)
from services import prompts
from services.errors import AIError
from services.llm_client import LLMClient
from services.model_family import is_regression_model

logger = logging.getLogger(__name__)

# 检测要稳定，生成类的任务允许发散一些
TEMPERATURE_DETECT = 0.2
TEMPERATURE_CLEAN = 0.3
TEMPERATURE_CHAT = 0.7
TEMPERATURE_CREATIVE = 1.0

_BOUNDED_METRICS = ("accuracy", "precision", "recall", "f1Score")


def _validate(raw: dict, schema: Type[CamelModel], capability: str) -> dict:
    try:
        return schema.model_validate(raw).dump()
    except ValidationError as e:
        logger.error("Incomplete AI response for %s: %s", capability, e.errors()[:3])
        raise AIError("Incomplete AI response") from e


def improve(llm: LLMClient, req: ImproveRequest) -> dict:
    system, user = prompts.improve_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_CREATIVE, "Failed to get AI suggestions")
    return _validate(raw, ImproveResponse, "improve")


def analyze_data(llm: LLMClient, req: AnalyzeDataRequest) -> dict:
    system, user = prompts.analyze_data_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_CREATIVE, "Failed to analyze data")
    return _validate(raw, AnalyzeDataResponse, "analyze-data")


def analyze_model(llm: LLMClient, req: AnalyzeModelRequest) -> dict:
    system, user = prompts.analyze_model_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_CREATIVE, "Failed to analyze model")
    return _validate(raw, AnalyzeModelResponse, "analyze-model")


def clean_data(llm: LLMClient, req: CleanDataRequest) -> dict:
    system, user = prompts.clean_data_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_CLEAN, "Failed to analyze data for cleaning")
    return _validate(raw, CleanDataResponse, "clean-data")


def model_chat(llm: LLMClient, req: ModelChatRequest) -> dict:
    system, user = prompts.model_chat_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_CHAT, "Failed to generate model code")
    return _validate(raw, ModelChatResponse, "model-chat")


def analyze_detected_model(llm: LLMClient, req: AnalyzeDetectedModelRequest) -> dict:
    system, user = prompts.analyze_detected_model_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_CHAT, "Failed to analyze model")
    return _validate(raw, AnalyzeDetectedModelResponse, "analyze-detected-model")


def generate_model_experiments(llm: LLMClient, req: GenerateExperimentsRequest) -> dict:
    system, user = prompts.generate_experiments_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_CHAT, "Failed to generate experiments")
    return _validate(raw, GenerateExperimentsResponse, "generate-model-experiments")


def detect_model_output(llm: LLMClient, req: DetectModelOutputRequest) -> dict:
    system, user = prompts.detect_model_output_prompt(req)
    raw = llm.complete_json(system, user, TEMPERATURE_DETECT, "Failed to detect model output")
    return _validate(normalize_detection(raw), DetectModelOutputResponse, "detect-model-output")


# ---- 检测结果规范化 ----

def _as_number(value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def normalize_detection(raw: dict) -> dict:
    """
    补全缺失字段并做数值清洗:
    - detected 转成 bool，summary 缺省为 "No summary available"
    - 百分数形式 (1 < v <= 100) 的 accuracy/precision/recall/f1 除以 100；
      回归模型的 accuracy 槽位是 R²，不动
    - customMetrics 里非数值的条目丢弃
    """
    metrics = raw.get("metrics") if isinstance(raw.get("metrics"), dict) else {}
    model_type = raw.get("modelType") or None
    regression = is_regression_model(model_type)

    normalized_metrics = {}
    for key in (*_BOUNDED_METRICS, "loss"):
        value = metrics.get(key)
        if value is None:
            normalized_metrics[key] = None
            continue
        if key in _BOUNDED_METRICS and _as_number(value) is not None:
            if 1 < value <= 100 and not (key == "accuracy" and regression):
                value = value / 100
        normalized_metrics[key] = value

    custom = metrics.get("customMetrics")
    if isinstance(custom, dict):
        normalized_metrics["customMetrics"] = {
            str(k): v for k, v in custom.items() if _as_number(v) is not None
        }
    else:
        normalized_metrics["customMetrics"] = None

    dataset_info = raw.get("datasetInfo")
    if isinstance(dataset_info, dict):
        dataset_info = {
            "rows": dataset_info.get("rows"),
            "columns": dataset_info.get("columns"),
            "features": dataset_info.get("features"),
        }
    else:
        dataset_info = None

    return {
        "detected": bool(raw.get("detected")),
        "modelType": model_type,
        "metrics": normalized_metrics,
        "confusionMatrix": raw.get("confusionMatrix") or None,
        "datasetInfo": dataset_info,
        "summary": raw.get("summary") or "No summary available",
    }
