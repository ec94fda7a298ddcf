"""
存储服务 - SQLite
Session 和 Run 的创建 / 查询；Run 只追加不修改
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session as DBSession

from db.models import MLSession, Run, utcnow
from schemas import RunCreate

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


# ---- Sessions ----

def create_session(db: DBSession, name: Optional[str] = None) -> dict:
    s = MLSession(name=name or "Untitled Session")
    db.add(s)
    db.commit()
    db.refresh(s)
    logger.info("Session created: %s (%s)", s.id, s.name)
    return _session_to_dict(s)


def get_session(db: DBSession, session_id: str) -> Optional[dict]:
    """带上该 session 的全部 runs（按创建时间升序）"""
    s = db.get(MLSession, session_id)
    if not s:
        return None
    data = _session_to_dict(s)
    data["runs"] = [_run_to_dict(r) for r in s.runs]
    return data


def session_exists(db: DBSession, session_id: str) -> bool:
    return db.get(MLSession, session_id) is not None


def _session_to_dict(s: MLSession) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "createdAt": _iso(s.created_at),
        "updatedAt": _iso(s.updated_at),
    }


# ---- Runs ----

def save_run(db: DBSession, data: RunCreate) -> Optional[dict]:
    """保存 run；session 不存在时返回 None"""
    s = db.get(MLSession, data.session_id)
    if not s:
        return None

    run = Run(
        session_id=data.session_id,
        name=data.name,
        code=data.code,
        accuracy=data.accuracy,
        precision=data.precision,
        recall=data.recall,
        f1_score=data.f1_score,
        model_type=data.model_type,
        dataset_rows=data.dataset_rows,
        dataset_columns=data.dataset_columns,
        dataset_features=data.dataset_features,
        confusion_matrix=data.confusion_matrix,
        stdout=data.stdout,
        error=data.error,
        is_improved=bool(data.is_improved),
        explanation=data.explanation,
    )
    db.add(run)
    s.updated_at = utcnow()
    db.commit()
    db.refresh(run)
    logger.info("Run saved: %s session=%s model=%s accuracy=%.4f",
                run.id, run.session_id, run.model_type, run.accuracy)
    return _run_to_dict(run)


def list_runs(db: DBSession, session_id: str) -> list[dict]:
    """按 accuracy 降序，相同 accuracy 时先保存的在前"""
    runs = (
        db.query(Run)
        .filter(Run.session_id == session_id)
        .order_by(Run.accuracy.desc(), Run.created_at)
        .all()
    )
    return [_run_to_dict(r) for r in runs]


def _run_to_dict(r: Run) -> dict:
    return {
        "id": r.id,
        "sessionId": r.session_id,
        "name": r.name,
        "code": r.code,
        "accuracy": r.accuracy,
        "precision": r.precision,
        "recall": r.recall,
        "f1Score": r.f1_score,
        "modelType": r.model_type,
        "datasetRows": r.dataset_rows,
        "datasetColumns": r.dataset_columns,
        "datasetFeatures": r.dataset_features,
        "confusionMatrix": r.confusion_matrix,
        "stdout": r.stdout,
        "error": r.error,
        "isImproved": r.is_improved,
        "explanation": r.explanation,
        "createdAt": _iso(r.created_at),
    }
