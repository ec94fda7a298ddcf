"""
Run 保存 / 查询路由
Run 只追加，不提供修改和删除
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DBSession

from db.database import get_db
from schemas import RunCreate
from services import storage
from services.errors import NotFoundError

router = APIRouter()


@router.post("")
async def save_run(body: RunCreate, db: DBSession = Depends(get_db)):
    run = storage.save_run(db, body)
    if run is None:
        raise NotFoundError("Session not found")
    return {"data": run}


@router.get("/{session_id}")
async def list_runs(session_id: str, db: DBSession = Depends(get_db)):
    """某个 session 的所有 runs，按 accuracy 降序（排行榜）"""
    if not storage.session_exists(db, session_id):
        raise NotFoundError("Session not found")
    return {"data": storage.list_runs(db, session_id)}
