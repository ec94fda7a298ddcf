"""
Session 管理路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DBSession

from db.database import get_db
from schemas import SessionCreate
from services import storage
from services.errors import NotFoundError

router = APIRouter()


@router.post("")
async def create_session(body: SessionCreate, db: DBSession = Depends(get_db)):
    session = storage.create_session(db, body.name)
    return {"data": session}


@router.get("/{session_id}")
async def get_session(session_id: str, db: DBSession = Depends(get_db)):
    """获取 session 以及其下所有 runs"""
    session = storage.get_session(db, session_id)
    if not session:
        raise NotFoundError("Session not found")
    return {"data": session}
