from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from .db import Base


class InventoryItem(Base):
    __tablename__ = "inventory"
    id = Column(Integer, primary_key=True)
    part_number = Column(String(128), index=True, nullable=False)
    mfg_part_number = Column(String(128), nullable=False, default="")
    qty = Column(Integer, nullable=False, default=0)
    part_description = Column(Text, nullable=False, default="")
    supplier = Column(String(255), nullable=False, default="")
    location = Column(String(64), index=True, nullable=False, default="")
    package = Column(String(32), nullable=False, default="")
    reorder_point = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())


class PendingChange(Base):
    __tablename__ = "pending_changes"
    id = Column(Integer, primary_key=True)
    change_type = Column(String(32), nullable=False)
    status = Column(String(16), index=True, nullable=False, default="pending")
    requested_by = Column(String(255), nullable=False)
    # JSON documents stored as text
    item_data = Column(Text, nullable=False, default="{}")
    original_data = Column(Text, nullable=True)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AppSetting(Base):
    __tablename__ = "app_settings"
    __table_args__ = (UniqueConstraint("key", name="uq_app_settings_key"),)
    id = Column(Integer, primary_key=True)
    key = Column(String(128), nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())


class ReorderRequest(Base):
    __tablename__ = "reorder_requests"
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=True)
    part_number = Column(String(128), index=True, nullable=False)
    part_description = Column(Text, nullable=False, default="")
    current_qty = Column(Integer, nullable=False, default=0)
    reorder_point = Column(Integer, nullable=True)
    supplier = Column(String(255), nullable=False, default="")
    location = Column(String(64), nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    timeframe = Column(String(32), nullable=False, default="")
    urgency = Column(String(16), nullable=False)
    requester = Column(String(255), nullable=False)
    notes = Column(Text, nullable=False, default="")
    status = Column(String(16), index=True, nullable=False, default="pending")
    status_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
