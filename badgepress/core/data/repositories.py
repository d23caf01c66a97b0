"""Data Repositories for the BadgePress service"""

import logging
import os
import shutil
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from badgepress.badges.errors import IngestionError
from badgepress.badges.stores import AssetMetadata, AssetStore, ContentStore
from badgepress.config import settings
from badgepress.core.data.models import Asset, BadgeRecord, RecordMeta

logger = logging.getLogger(__name__)


class RecordRepository(ContentStore):
    """Repository for BadgeRecord and its metadata"""

    def __init__(self, db: Session):
        self.db = db

    def create_record(
        self, title: str = "", criteria: str = "", status: str = "draft"
    ) -> BadgeRecord:
        """Create a new badge record"""
        record = BadgeRecord(title=title, criteria=criteria, status=status)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info("Created badge record %s", record.id)
        return record

    def get_record(self, record_id: int) -> BadgeRecord | None:
        """Get badge record by id"""
        return self.db.query(BadgeRecord).filter(BadgeRecord.id == record_id).first()

    def list_records(self, status: str | None = None) -> list[BadgeRecord]:
        """List badge records, newest first"""
        query = self.db.query(BadgeRecord)
        if status:
            query = query.filter(BadgeRecord.status == status)
        return query.order_by(BadgeRecord.created_at.desc(), BadgeRecord.id.desc()).all()

    def save_record(self, record: BadgeRecord) -> BadgeRecord:
        """Persist changes made to a record"""
        record.updated_at = datetime.now(UTC)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def _get_meta_row(self, record_id: int, key: str) -> RecordMeta | None:
        return (
            self.db.query(RecordMeta)
            .filter(RecordMeta.record_id == record_id, RecordMeta.meta_key == key)
            .first()
        )

    def get_meta(self, record_id: int, key: str) -> str | None:
        row = self._get_meta_row(record_id, key)
        return row.meta_value if row else None

    def set_meta(self, record_id: int, key: str, value: str) -> None:
        row = self._get_meta_row(record_id, key)
        if row is None:
            row = RecordMeta(record_id=record_id, meta_key=key, meta_value=value)
            self.db.add(row)
        else:
            row.meta_value = value
        self.db.commit()

    def delete_meta(self, record_id: int, key: str) -> bool:
        row = self._get_meta_row(record_id, key)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True


class AssetRepository(AssetStore):
    """Repository for managed assets stored under an upload directory"""

    def __init__(self, db: Session, upload_dir: str | None = None):
        self.db = db
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def get_asset(self, asset_id: int) -> Asset | None:
        """Get asset by id"""
        return self.db.query(Asset).filter(Asset.id == asset_id).first()

    def get_asset_file(self, asset_id: int) -> str | None:
        asset = self.get_asset(asset_id)
        if asset is None or not asset.file_path:
            return None
        return asset.file_path

    def get_asset_url(self, asset_id: int) -> str | None:
        """Public URL of an asset under the uploads mount"""
        file_path = self.get_asset_file(asset_id)
        if file_path is None:
            return None
        try:
            relative = Path(file_path).resolve().relative_to(self.upload_dir.resolve())
        except ValueError:
            # stored before UPLOAD_DIR moved, not served by the uploads mount
            logger.warning("Asset %s at %s is outside %s", asset_id, file_path, self.upload_dir)
            return None
        return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{relative.as_posix()}"

    def _target_dir(self, parent_record_id: int | None) -> Path:
        """uploads/YYYY/MM, dated by the parent record when there is one"""
        when = datetime.now(UTC)
        if parent_record_id:
            record = self.db.get(BadgeRecord, parent_record_id)
            if record is not None and record.created_at:
                when = record.created_at
        return self.upload_dir / f"{when.year:04d}" / f"{when.month:02d}"

    @staticmethod
    def _unique_filename(directory: Path, filename: str) -> str:
        """badge.png, badge-1.png, badge-2.png, ..."""
        stem, ext = os.path.splitext(filename)
        candidate = filename
        number = 1
        while (directory / candidate).exists():
            candidate = f"{stem}-{number}{ext}"
            number += 1
        return candidate

    def create_asset(self, source_path: str, metadata: AssetMetadata) -> int:
        """Copy a file into managed storage and register it"""
        target_dir = self._target_dir(metadata.parent_record_id)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Upload directory %s is not writable: %s", target_dir, e)
            raise IngestionError(
                f"Unable to create directory {target_dir}. Is its parent directory writable by the server?"
            ) from e

        filename = self._unique_filename(target_dir, metadata.filename)
        target = target_dir / filename
        try:
            shutil.copyfile(source_path, target)
            # same permissions as the directory, minus the execute bits
            os.chmod(target, target_dir.stat().st_mode & 0o666)
        except OSError as e:
            logger.error("Could not copy %s to %s: %s", source_path, target, e)
            raise IngestionError(
                f"The uploaded file could not be moved to {target_dir}."
            ) from e

        asset = Asset(
            file_path=str(target),
            mime_type=metadata.mime_type,
            parent_record_id=metadata.parent_record_id,
            title=metadata.title,
            content=metadata.content,
            width=metadata.extra.get("width"),
            height=metadata.extra.get("height"),
            filesize=target.stat().st_size,
        )
        try:
            self.db.add(asset)
            self.db.commit()
            self.db.refresh(asset)
        except SQLAlchemyError as e:
            self.db.rollback()
            target.unlink(missing_ok=True)
            logger.error("Could not register asset for %s: %s", target, e)
            raise IngestionError("Could not insert attachment into the database.") from e

        logger.info("Created asset %s at %s", asset.id, target)
        return asset.id

    def set_record_image(self, record_id: int, asset_id: int) -> bool:
        record = self.db.get(BadgeRecord, record_id)
        if record is None or self.get_asset(asset_id) is None:
            return False
        record.image_asset_id = asset_id
        record.updated_at = datetime.now(UTC)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Could not set image %s on badge %s: %s", asset_id, record_id, e)
            return False
        return True

    def remove_record_image(self, record_id: int) -> bool:
        """Clear a record's image reference; the asset itself is kept"""
        record = self.db.get(BadgeRecord, record_id)
        if record is None or record.image_asset_id is None:
            return False
        record.image_asset_id = None
        record.updated_at = datetime.now(UTC)
        self.db.commit()
        return True
