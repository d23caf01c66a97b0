"""BadgePress Data Models"""

from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from badgepress.core.data.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BadgeRecord(Base):
    """Badge Record Model
    - criteria is rich text, description/version/validity live in record_meta
    - image_asset_id is a weak reference, the asset is owned by the asset store
    """

    __tablename__ = "badge_records"

    id = Column[int](Integer, primary_key=True, autoincrement=True)
    title = Column[str](String(200), nullable=False, default="")
    status = Column[str](
        String(20), nullable=False, default="draft"
    )  # "draft", "pending", "published", "private", "trashed"
    criteria = Column[str](Text, nullable=False, default="")
    image_asset_id = Column[int](Integer, nullable=True)

    created_at = Column[datetime](DateTime, default=_utcnow, nullable=False)
    updated_at = Column[datetime](
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    meta = relationship(
        "RecordMeta", back_populates="record", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_badge_records_status", "status"),)

    def __repr__(self) -> str:
        return f"<BadgeRecord(id={self.id}, title='{self.title}', status='{self.status}')>"

    def to_dict(self) -> dict:
        """Convert badge record to dictionary"""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "criteria": self.criteria,
            "image_asset_id": self.image_asset_id,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
            "updated_at": self.updated_at.isoformat().replace("+00:00", "Z"),
        }


class RecordMeta(Base):
    """Key/value metadata attached to a badge record"""

    __tablename__ = "record_meta"

    id = Column[int](Integer, primary_key=True, autoincrement=True)
    record_id = Column[int](
        Integer, ForeignKey("badge_records.id", ondelete="CASCADE"), nullable=False
    )
    meta_key = Column[str](String(255), nullable=False)
    meta_value = Column[str](Text, nullable=True)

    record = relationship("BadgeRecord", back_populates="meta")

    __table_args__ = (
        Index("idx_record_meta_record", "record_id"),
        UniqueConstraint("record_id", "meta_key", name="uq_record_meta_key"),
    )

    def __repr__(self) -> str:
        return f"<RecordMeta(record_id={self.record_id}, key='{self.meta_key}')>"


class Asset(Base):
    """Managed binary resource (badge images)"""

    __tablename__ = "assets"

    id = Column[int](Integer, primary_key=True, autoincrement=True)
    file_path = Column[str](String(500), nullable=False)
    mime_type = Column[str](String(100), nullable=False)
    parent_record_id = Column[int](Integer, nullable=True, index=True)
    title = Column[str](String(200), nullable=False, default="")
    content = Column[str](Text, nullable=False, default="")

    width = Column[int](Integer, nullable=True)
    height = Column[int](Integer, nullable=True)
    filesize = Column[int](Integer, nullable=True)

    created_at = Column[datetime](DateTime, default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Asset(id={self.id}, file_path='{self.file_path}', mime_type='{self.mime_type}')>"

    def to_dict(self) -> dict:
        """Convert asset to dictionary"""
        return {
            "id": self.id,
            "file_path": self.file_path,
            "mime_type": self.mime_type,
            "parent_record_id": self.parent_record_id,
            "title": self.title,
            "content": self.content,
            "width": self.width,
            "height": self.height,
            "filesize": self.filesize,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
        }
