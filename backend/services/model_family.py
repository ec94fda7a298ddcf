"""
根据模型类名猜测任务类型（分类 / 回归）
回归模型的 "accuracy" 槽位里放的是 R²
"""
from typing import Optional

_CLASSIFICATION_HINTS = ("classifier", "logistic", "svc", "naivebayes", "gaussiannb",
                         "multinomialnb", "bernoullinb", "perceptron")
_REGRESSION_HINTS = ("regress", "ridge", "lasso", "elasticnet", "svr", "lars",
                     "bayesianridge", "kernelridge")

CLASSIFICATION_ALTERNATIVES = [
    "RandomForestClassifier", "GradientBoostingClassifier", "LogisticRegression",
    "SVC", "KNeighborsClassifier", "XGBClassifier",
]
REGRESSION_ALTERNATIVES = [
    "RandomForestRegressor", "GradientBoostingRegressor", "Ridge", "Lasso",
    "ElasticNet", "XGBRegressor", "SVR",
]


def _normalize(model_type: Optional[str]) -> str:
    return (model_type or "").lower().replace(" ", "").replace("_", "")


def is_classification_model(model_type: Optional[str]) -> bool:
    name = _normalize(model_type)
    if not name:
        return False
    if "kneighbors" in name:
        return "regressor" not in name
    return any(hint in name for hint in _CLASSIFICATION_HINTS)


def is_regression_model(model_type: Optional[str]) -> bool:
    name = _normalize(model_type)
    if not name or is_classification_model(model_type):
        return False
    return any(hint in name for hint in _REGRESSION_HINTS)


def alternative_models(model_type: Optional[str], limit: int = 4) -> list[str]:
    """同任务类型下、排除当前模型后的候选模型"""
    candidates = CLASSIFICATION_ALTERNATIVES if is_classification_model(model_type) else REGRESSION_ALTERNATIVES
    current = _normalize(model_type)
    picked = []
    for candidate in candidates:
        stem = candidate.lower().replace("classifier", "").replace("regressor", "")
        if current and stem in current:
            continue
        picked.append(candidate)
    return picked[:limit]
