"""
SQLAlchemy ORM 模型
"""
from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text, ForeignKey
)
from sqlalchemy.orm import DeclarativeBase, relationship


def utcnow() -> datetime:
    # SQLite 不保存时区，统一存 naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class MLSession(Base):
    __tablename__ = "sessions"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False, default="Untitled Session")

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    runs = relationship(
        "Run",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="Run.created_at",
    )


class Run(Base):
    """一次保存下来的建模结果，创建后不再修改"""
    __tablename__ = "runs"

    id = Column(String, primary_key=True, default=_new_id)
    session_id = Column(String, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    code = Column(Text, nullable=False)
    model_type = Column(String, nullable=False)

    accuracy = Column(Float, nullable=False)
    precision = Column(Float)
    recall = Column(Float)
    f1_score = Column(Float)

    dataset_rows = Column(Integer)
    dataset_columns = Column(Integer)
    # 序列化后的 JSON 字符串，原样存取
    dataset_features = Column(Text)
    confusion_matrix = Column(Text)

    stdout = Column(Text)
    error = Column(Text)
    is_improved = Column(Boolean, default=False, nullable=False)
    explanation = Column(Text)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    session = relationship("MLSession", back_populates="runs")
