from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean, JSON, DateTime, ForeignKey, func
from typing import Optional, Dict, Any

from .base import Base


class Notification(Base):
    __tablename__ = 'notifications'
    TYPE_REPAIR_STATUS = 'repair_status'
    TYPE_SYSTEM = 'system'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # NULL user_id means broadcast to every staff member
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default=TYPE_SYSTEM, index=True)
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reference_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now())
