"""
AI Gateway 路由
每个接口把请求转成 prompt 交给 LLM，校验后以 {"data": ...} 返回
"""
from fastapi import APIRouter, Depends

from schemas import (
    AnalyzeDataRequest, AnalyzeDetectedModelRequest, AnalyzeModelRequest, CleanDataRequest,
    DetectModelOutputRequest, GenerateExperimentsRequest, ImproveRequest, ModelChatRequest,
)
from services import ai_service
from services.llm_client import LLMClient, get_llm_client

router = APIRouter()


@router.post("/improve")
def improve(body: ImproveRequest, llm: LLMClient = Depends(get_llm_client)):
    return {"data": ai_service.improve(llm, body)}


@router.post("/analyze-data")
def analyze_data(body: AnalyzeDataRequest, llm: LLMClient = Depends(get_llm_client)):
    return {"data": ai_service.analyze_data(llm, body)}


@router.post("/analyze-model")
def analyze_model(body: AnalyzeModelRequest, llm: LLMClient = Depends(get_llm_client)):
    return {"data": ai_service.analyze_model(llm, body)}


@router.post("/detect-model-output")
def detect_model_output(body: DetectModelOutputRequest, llm: LLMClient = Depends(get_llm_client)):
    """从任意代码输出中识别模型指标"""
    return {"data": ai_service.detect_model_output(llm, body)}


@router.post("/analyze-detected-model")
def analyze_detected_model(body: AnalyzeDetectedModelRequest, llm: LLMClient = Depends(get_llm_client)):
    return {"data": ai_service.analyze_detected_model(llm, body)}


@router.post("/generate-model-experiments")
def generate_model_experiments(body: GenerateExperimentsRequest, llm: LLMClient = Depends(get_llm_client)):
    return {"data": ai_service.generate_model_experiments(llm, body)}


@router.post("/clean-data")
def clean_data(body: CleanDataRequest, llm: LLMClient = Depends(get_llm_client)):
    return {"data": ai_service.clean_data(llm, body)}


@router.post("/model-chat")
def model_chat(body: ModelChatRequest, llm: LLMClient = Depends(get_llm_client)):
    """对话式生成建模代码"""
    return {"data": ai_service.model_chat(llm, body)}
