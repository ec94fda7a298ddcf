"""
各个 AI 能力的 prompt 构造
每个函数返回 (system_prompt, user_prompt)
"""
import json
from typing import Optional

from schemas import (
    AnalyzeDataRequest, AnalyzeDetectedModelRequest, AnalyzeModelRequest, CleanDataRequest,
    DetectModelOutputRequest, GenerateExperimentsRequest, ImproveRequest, ModelChatRequest,
)
from services.model_family import alternative_models, is_classification_model

# 执行环境里数据集的三个可用路径（和前端执行器保持一致）
DATASET_ALIAS = "uploaded.csv"
DATASET_FALLBACK = "data/uploaded.csv"

TAGGED_OUTPUT_RULES = """Results must be printed as sentinel lines so they can be parsed:
- DATASET_INFO: {"rows": <int>, "columns": <int>, "features": ["f1", "f2", ...]}
- MODEL_TYPE: <estimator class name>
- ACCURACY: <float between 0 and 1>
- CONFUSION_MATRIX: [[...], [...]]"""


def _pct(value: Optional[float]) -> str:
    return f"{value * 100:.2f}%" if value is not None else "unknown"


def _load_snippet(file_name: str) -> str:
    return (
        "import pandas as pd\n"
        "try:\n"
        f"    df = pd.read_csv('{file_name}')\n"
        "except FileNotFoundError:\n"
        "    try:\n"
        f"        df = pd.read_csv('{DATASET_ALIAS}')\n"
        "    except FileNotFoundError:\n"
        f"        df = pd.read_csv('{DATASET_FALLBACK}')"
    )


# ---- improve ----

def improve_prompt(req: ImproveRequest) -> tuple[str, str]:
    system = f"""You are a senior machine learning engineer reviewing a user's experiment.
Explain what limits the current model and write one improved, complete Python script.

{TAGGED_OUTPUT_RULES}

The improved script must keep the same dataset, use scikit-learn, include every import
and print its results in exactly the format above.

Reply with a JSON object:
{{
  "diagnosis": "why the current model performs the way it does",
  "suggestions": ["suggestion", "..."],
  "improvedExperiment": {{"name": "short experiment name", "code": "complete Python script"}}
}}"""

    history = ""
    if req.all_runs:
        lines = [
            f"{i}. {run.name}: {_pct(run.accuracy)} accuracy using {run.model_type}"
            for i, run in enumerate(req.all_runs, 1)
        ]
        history = "Previous experiments:\n" + "\n".join(lines) + "\n\n"

    latest = req.latest_run
    user = (
        f"{history}Current experiment:\n"
        f"- Model type: {latest.model_type}\n"
        f"- Accuracy: {_pct(latest.accuracy)}\n"
        f"- Dataset: {latest.dataset_rows or 'unknown'} rows, {latest.dataset_columns or 'unknown'} columns\n"
        f"- Features: {latest.dataset_features or 'unknown'}\n\n"
        f"Current code:\n```python\n{req.code}\n```\n\n"
        "Return the JSON object with diagnosis, suggestions and the improved experiment."
    )
    return system, user


# ---- analyze-data ----

def analyze_data_prompt(req: AnalyzeDataRequest) -> tuple[str, str]:
    columns = ", ".join(f"{c.name} ({c.type})" for c in req.columns)
    rows = "\n".join(f"Row {i}: {json.dumps(row)}" for i, row in enumerate(req.sample_rows[:3], 1))

    stat_lines = []
    for name, stat in req.stats.items():
        if stat.type == "numeric":
            mean = f"{stat.mean:.2f}" if stat.mean is not None else "N/A"
            stat_lines.append(
                f"{name}: mean={mean}, min={stat.min if stat.min is not None else 'N/A'}, "
                f"max={stat.max if stat.max is not None else 'N/A'}, count={stat.count}, missing={stat.missing}"
            )
        else:
            stat_lines.append(
                f"{name}: unique={stat.unique if stat.unique is not None else 'N/A'}, "
                f"count={stat.count}, missing={stat.missing}"
            )

    system = f"""You are a data scientist. Describe the dataset below, pick the most revealing
charts and recommend machine learning models for it.

Columns: {columns}
Sample rows:
{rows}
Statistics:
{chr(10).join(stat_lines)}

Reply with a JSON object:
{{
  "dataDescription": "what the data represents",
  "insights": ["insight", "..."],
  "suggestedVisualizations": [
    {{"type": "bar|line|scatter|histogram|pie", "title": "...", "xColumn": "column",
      "yColumn": "column or null", "description": "what the chart shows"}}
  ],
  "mlRecommendations": {{
    "taskType": "regression|classification|clustering",
    "targetColumn": "most likely target or null",
    "featureColumns": ["..."],
    "recommendedModels": [{{"name": "EstimatorName", "reason": "...", "expectedPerformance": "high|medium|low"}}],
    "dataQualityNotes": ["..."],
    "featureEngineeringSuggestions": ["..."]
  }}
}}

Suggest 2-4 visualizations and 3-5 models ordered by expected performance."""
    return system, "Analyze the dataset and suggest visualizations and models."


# ---- analyze-model ----

def analyze_model_prompt(req: AnalyzeModelRequest) -> tuple[str, str]:
    matrix = json.dumps(req.confusion_matrix) if req.confusion_matrix else "Not available"
    system = f"""You are a machine learning expert. Review this trained model and design
experiments that probe feature importance with different feature subsets.

Model: {req.model_type}
Accuracy: {req.accuracy}
Dataset: {req.dataset_rows or 'unknown'} rows, {req.dataset_columns or 'unknown'} columns
Features: {", ".join(req.features)}
Confusion matrix: {matrix}
Code:
{req.code}

Reply with a JSON object:
{{
  "analysis": "assessment of the current model",
  "statistics": {{"strengths": "...", "weaknesses": "...", "recommendation": "..."}},
  "featureExperiments": [
    {{"name": "...", "description": "...", "features": ["..."], "code": "complete Python script"}}
  ]
}}

Write 3-5 experiments. Each one keeps the model type {req.model_type}, uses only its own
feature subset, is runnable as-is and prints MODEL_TYPE, ACCURACY and CONFUSION_MATRIX lines."""
    return system, "Analyze the model and generate feature experiments."


# ---- detect-model-output ----

def detect_model_output_prompt(req: DetectModelOutputRequest) -> tuple[str, str]:
    system = f"""You extract machine learning results from a Python script and its printed output.

Code:
{req.code}

Output:
{req.stdout}

Find the model type (from imports and instantiation: sklearn, xgboost, lightgbm, keras,
pytorch, ...) and every metric that was printed.

Rules:
- Classification models report classification accuracy in "accuracy".
- Regression models (LinearRegression, Ridge, Lasso, ElasticNet, SVR, tree/forest regressors, ...)
  report the R² score in "accuracy".
- Percentages become fractions (95% -> 0.95).
- Any other numeric metric (MSE, RMSE, MAE, AUC, r2, ...) goes into customMetrics.
- If no model or metric is present, set "detected" to false.

Reply with a JSON object:
{{
  "detected": true,
  "modelType": "EstimatorName or null",
  "metrics": {{"accuracy": null, "precision": null, "recall": null, "f1Score": null,
               "loss": null, "customMetrics": {{}}}},
  "confusionMatrix": [[0, 0], [0, 0]] or null,
  "datasetInfo": {{"rows": null, "columns": null, "features": null}} or null,
  "summary": "one paragraph describing what the code does"
}}"""
    return system, "Extract the ML metrics from the code and output. Return valid JSON."


# ---- analyze-detected-model ----

def analyze_detected_model_prompt(req: AnalyzeDetectedModelRequest) -> tuple[str, str]:
    accuracy = req.metrics.accuracy if req.metrics and req.metrics.accuracy is not None else 0.0
    classification = is_classification_model(req.model_type)
    task = "Classification" if classification else "Regression"
    score_line = 'print(f"Accuracy: {score:.4f}")' if classification else 'print(f"R^2 score: {score:.4f}")'
    file_name = req.data_file_name or DATASET_ALIAS
    candidates = ", ".join(alternative_models(req.model_type))

    system = f"""You are a machine learning expert. Assess the user's model and propose
alternative estimators worth trying on the same data.

Model type: {req.model_type or 'Unknown'}
Score (R² or accuracy): {_pct(accuracy)}
Task type: {task}
Summary: {req.summary or 'No summary'}
Data file: {file_name}
Code:
{req.code or 'No code provided'}

Reply with a JSON object:
{{
  "insight": {{
    "quality": "excellent|good|fair|poor",
    "summary": "2-3 sentences on model performance",
    "strengths": ["..."],
    "weaknesses": ["..."],
    "suggestions": ["..."]
  }},
  "experiments": [
    {{"name": "EstimatorClassName", "description": "why it may do better", "code": "complete Python script"}}
  ]
}}

Experiment rules:
- 3-4 experiments, each a different estimator taken from: {candidates}
- Load the data the same way as the user's code, from '{file_name}':
{_load_snippet(file_name)}
- Keep the same target column, features and train/test split.
- Bind the fitted estimator to a variable named `model`.
- Finish with exactly: {score_line}
- Only change the algorithm, not the features.

Quality bands: excellent >= 90%, good >= 70%, fair >= 50%, poor below that."""
    return system, "Assess this model and propose experiments with alternative estimators."


# ---- generate-model-experiments ----

def generate_experiments_prompt(req: GenerateExperimentsRequest) -> tuple[str, str]:
    file_name = req.data_file_name or DATASET_ALIAS
    system = f"""You are a machine learning engineer. Write several experiments that try
different models on the user's data.

Data file: {file_name}
Columns: {", ".join(req.columns) or 'Unknown'}
Target column: {req.target_column or 'Unknown'}
Task type: {req.task_type or 'regression'}
Current model: {req.current_model_type or 'Unknown'}
Current score: {_pct(req.current_accuracy)}

Write 4-5 complete scripts. Each one loads "{file_name}", builds X and y, trains one model and
ends by printing "R^2 score: <value>" (regression) or "Accuracy: <value>" (classification).
Mix simple baselines, tree ensembles and regularized linear models (plus SVM / logistic
regression for classification). Bind the fitted estimator to `model`.

Reply with a JSON object:
{{
  "experiments": [
    {{"name": "...", "description": "...", "modelType": "regression|classification",
      "complexity": "simple|medium|complex", "code": "complete Python script"}}
  ],
  "strategy": "one sentence on the overall plan"
}}"""
    return system, "Generate diverse model experiments that could beat the current score."


# ---- clean-data ----

def clean_data_prompt(req: CleanDataRequest) -> tuple[str, str]:
    feedback = ""
    if req.user_feedback:
        feedback = (
            f'\nThe user commented on the previous suggestion: "{req.user_feedback}"\n'
            "Adjust the cleaning plan accordingly.\n"
        )
    system = f"""You are a data cleaning expert. Inspect the dataset and propose cleaning steps.

Columns: {json.dumps(req.columns)}
Sample rows: {json.dumps(req.sample_rows[:5])}
Statistics: {json.dumps(req.stats)}
{feedback}
Reply with a JSON object:
{{
  "cleaningOperations": [
    {{"type": "missing_values|outliers|duplicates|format|type_conversion|normalization",
      "column": "column or null", "description": "what is wrong",
      "action": "what will be done", "impact": "low|medium|high", "rowsAffected": 0}}
  ],
  "summary": "1-2 sentences",
  "dataQualityScore": {{"before": 0, "after": 0}},
  "warnings": ["..."]
}}

Estimate affected rows per step. If the data is already clean, say so and keep the list short."""
    return system, "Analyze the data and suggest cleaning operations."


# ---- model-chat ----

def model_chat_prompt(req: ModelChatRequest) -> tuple[str, str]:
    ctx = req.data_context
    file_name = ctx.csv_file_name or DATASET_ALIAS

    column_lines = []
    for col in ctx.columns:
        line = f"{col.name} ({col.type})"
        if col.sample_values:
            line += " - samples: " + ", ".join(str(v) for v in col.sample_values[:3])
        column_lines.append(line)

    if ctx.sample_data:
        samples = "\n".join(f"Row {i}: {json.dumps(row)}" for i, row in enumerate(ctx.sample_data[:3], 1))
    else:
        samples = "No sample data available"

    recommendations = ""
    if req.ml_recommendations:
        rec = req.ml_recommendations
        models = ", ".join(f"{m.name} ({m.expected_performance} performance)" for m in rec.recommended_models)
        recommendations = (
            "\nEarlier analysis of this dataset:\n"
            f"- Task type: {rec.task_type}\n"
            f"- Suggested target: {rec.target_column or 'Not identified'}\n"
            f"- Suggested features: {', '.join(rec.feature_columns)}\n"
            f"- Recommended models: {models}\n"
            f"- Data quality notes: {'; '.join(rec.data_quality_notes)}\n"
        )

    history = ""
    if req.conversation_history:
        turns = "\n".join(
            f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}" for m in req.conversation_history
        )
        history = f"\nConversation so far:\n{turns}\n"

    system = f"""You are a data scientist helping a user build machine learning models in a
Python notebook. numpy, pandas and scikit-learn are already imported.

Dataset file: {file_name} (also available as '{DATASET_ALIAS}' and '{DATASET_FALLBACK}')
Rows: {ctx.row_count or 'Unknown'}
Columns:
{chr(10).join(column_lines)}

Sample data:
{samples}
{recommendations}{history}
Write complete, runnable code for what the user asks and explain it briefly.

Code rules:
1. Load the data like this:
{_load_snippet(file_name)}
2. Use train_test_split with a fixed random_state and handle missing values.
3. Regression: print(f"R² Score: {{r2:.4f}}"). Classification: print(f"Accuracy: {{accuracy:.4f}}").
   Print other useful metrics too.
4. Bind the fitted estimator to a variable named `model` so it can be exported.
5. Keep it short and readable.

If the prediction target is unclear, use the earlier analysis or guess from the column
names and say which column you chose.

Reply with a JSON object:
{{
  "response": "2-3 friendly sentences",
  "code": "complete Python code",
  "modelType": "EstimatorName",
  "targetColumn": "column being predicted",
  "features": ["feature", "..."]
}}"""
    return system, req.message
