"""
请求 / 响应的 Pydantic 模型
Python 侧字段用 snake_case，JSON 上统一是 camelCase
"""
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
CellValue = Union[str, float, None]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)


# ---- Sessions / Runs ----

class SessionCreate(CamelModel):
    name: Optional[str] = None


class RunCreate(CamelModel):
    session_id: str
    name: str
    code: str
    accuracy: float
    model_type: str
    precision: Optional[float] = None
    recall: Optional[float] = None
    f1_score: Optional[float] = None
    dataset_rows: Optional[int] = None
    dataset_columns: Optional[int] = None
    dataset_features: Optional[str] = None
    confusion_matrix: Optional[str] = None
    stdout: Optional[str] = None
    error: Optional[str] = None
    is_improved: Optional[bool] = None
    explanation: Optional[str] = None


# ---- 数据描述 ----

class ColumnStat(CamelModel):
    type: Literal["numeric", "categorical"]
    count: int
    missing: int
    mean: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    unique: Optional[int] = None


class DataColumn(CamelModel):
    name: str
    type: Literal["numeric", "categorical"]
    sample_values: list[CellValue] = Field(default_factory=list)


class RecommendedModel(CamelModel):
    name: NonEmptyStr
    reason: str = ""
    expected_performance: Literal["high", "medium", "low"]


class MLRecommendations(CamelModel):
    task_type: Literal["regression", "classification", "clustering"]
    target_column: Optional[str] = None
    feature_columns: list[str] = Field(default_factory=list)
    recommended_models: list[RecommendedModel] = Field(default_factory=list)
    data_quality_notes: list[str] = Field(default_factory=list)
    feature_engineering_suggestions: list[str] = Field(default_factory=list)


# ---- clean-data ----

class CleanDataRequest(CamelModel):
    columns: list[Any]
    sample_rows: list[Any] = Field(default_factory=list)
    stats: dict[str, Any] = Field(default_factory=dict)
    user_feedback: Optional[str] = None


class CleaningOperation(CamelModel):
    type: NonEmptyStr
    column: Optional[str] = None
    description: NonEmptyStr
    action: NonEmptyStr
    impact: str = "low"
    rows_affected: Optional[int] = None


class DataQualityScore(CamelModel):
    before: float
    after: float


class CleanDataResponse(CamelModel):
    cleaning_operations: list[CleaningOperation]
    summary: NonEmptyStr
    data_quality_score: DataQualityScore
    warnings: list[str] = Field(default_factory=list)


# ---- analyze-data ----

class AnalyzeDataRequest(CamelModel):
    columns: list[DataColumn]
    stats: dict[str, ColumnStat]
    sample_rows: list[list[CellValue]]


class VisualizationSpec(CamelModel):
    type: Literal["bar", "line", "scatter", "histogram", "pie"]
    title: NonEmptyStr
    x_column: NonEmptyStr
    y_column: Optional[str] = None
    description: NonEmptyStr


class AnalyzeDataResponse(CamelModel):
    data_description: NonEmptyStr
    insights: list[str]
    suggested_visualizations: list[VisualizationSpec]
    ml_recommendations: Optional[MLRecommendations] = None


# ---- analyze-model ----

class AnalyzeModelRequest(CamelModel):
    model_type: str
    accuracy: float
    features: list[str]
    confusion_matrix: Optional[list[list[float]]] = None
    code: str
    dataset_rows: Optional[int] = None
    dataset_columns: Optional[int] = None


class ModelStatistics(CamelModel):
    strengths: NonEmptyStr
    weaknesses: NonEmptyStr
    recommendation: NonEmptyStr


class FeatureExperiment(CamelModel):
    name: NonEmptyStr
    description: NonEmptyStr
    features: list[str]
    code: NonEmptyStr


class AnalyzeModelResponse(CamelModel):
    analysis: NonEmptyStr
    statistics: ModelStatistics
    feature_experiments: list[FeatureExperiment]


# ---- detect-model-output ----

class DetectModelOutputRequest(CamelModel):
    code: str
    stdout: str


class DetectedMetrics(CamelModel):
    accuracy: Optional[float] = None
    precision: Optional[float] = None
    recall: Optional[float] = None
    f1_score: Optional[float] = None
    loss: Optional[float] = None
    custom_metrics: Optional[dict[str, float]] = None


class DetectedDatasetInfo(CamelModel):
    rows: Optional[int] = None
    columns: Optional[int] = None
    features: Optional[list[str]] = None


class DetectModelOutputResponse(CamelModel):
    detected: bool = False
    model_type: Optional[str] = None
    metrics: DetectedMetrics = Field(default_factory=DetectedMetrics)
    confusion_matrix: Optional[list[list[Union[int, float]]]] = None
    dataset_info: Optional[DetectedDatasetInfo] = None
    summary: str = "No summary available"


# ---- model-chat ----

class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class DataContextColumn(CamelModel):
    name: str
    type: Literal["numeric", "categorical"]
    sample_values: Optional[list[CellValue]] = None


class DataContext(CamelModel):
    columns: list[DataContextColumn]
    sample_data: Optional[list[dict[str, CellValue]]] = None
    row_count: Optional[int] = None
    csv_file_name: Optional[str] = None


class ModelChatRequest(CamelModel):
    message: NonEmptyStr
    data_context: DataContext
    conversation_history: Optional[list[ChatMessage]] = None
    ml_recommendations: Optional[MLRecommendations] = None


class ModelChatResponse(CamelModel):
    response: NonEmptyStr
    code: NonEmptyStr
    model_type: NonEmptyStr
    target_column: NonEmptyStr
    features: list[str]


# ---- improve ----

class LatestRunSummary(CamelModel):
    accuracy: float
    model_type: str
    dataset_rows: Optional[int] = None
    dataset_columns: Optional[int] = None
    dataset_features: Optional[str] = None


class RunHistoryItem(CamelModel):
    name: str
    accuracy: float
    model_type: str


class ImproveRequest(CamelModel):
    session_id: str
    latest_run: LatestRunSummary
    code: str
    all_runs: Optional[list[RunHistoryItem]] = None


class ImprovedExperiment(CamelModel):
    name: NonEmptyStr
    code: NonEmptyStr


class ImproveResponse(CamelModel):
    diagnosis: NonEmptyStr
    suggestions: list[str]
    improved_experiment: ImprovedExperiment


# ---- analyze-detected-model / generate-model-experiments ----

class AnalyzeDetectedModelRequest(CamelModel):
    model_type: Optional[str] = None
    metrics: Optional[DetectedMetrics] = None
    summary: Optional[str] = None
    code: Optional[str] = None
    data_file_name: Optional[str] = None


class ModelInsight(CamelModel):
    quality: Literal["excellent", "good", "fair", "poor"]
    summary: NonEmptyStr
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class ExperimentSuggestion(CamelModel):
    name: NonEmptyStr
    description: str = ""
    code: NonEmptyStr
    model_type: Optional[str] = None
    complexity: Optional[str] = None


class AnalyzeDetectedModelResponse(CamelModel):
    insight: ModelInsight
    experiments: list[ExperimentSuggestion]


class GenerateExperimentsRequest(CamelModel):
    data_file_name: Optional[str] = None
    columns: list[str] = Field(default_factory=list)
    target_column: Optional[str] = None
    task_type: Optional[str] = None
    current_accuracy: Optional[float] = None
    current_model_type: Optional[str] = None


class GenerateExperimentsResponse(CamelModel):
    experiments: list[ExperimentSuggestion]
    strategy: str = ""
