"""Badge Record Service"""

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

from badgepress.badges.errors import RecordNotFound
from badgepress.badges.stores import AssetStore, ContentStore
from badgepress.badges.validity import (
    DESCRIPTION_META_KEY,
    ValidationWarning,
    ValidityRecorder,
    ValiditySnapshot,
    build_warnings,
)
from badgepress.badges.version import VERSION_META_KEY, normalize_version, persist_version
from badgepress.config import settings
from badgepress.core.auth.nonce import DESIGNER_ACTION, create_nonce
from badgepress.core.utils import strip_line_breaks, strip_tags

logger = logging.getLogger(__name__)


@dataclass
class SaveOutcome:
    """Result of a badge save"""

    record: object
    validity: ValiditySnapshot
    warnings: list[ValidationWarning] = field(default_factory=list)


class BadgeService:
    """Badge record editing; every save ends with a validity recompute"""

    def __init__(
        self,
        content_store: ContentStore,
        asset_store: AssetStore,
        validity: ValidityRecorder | None = None,
    ):
        self.content_store = content_store
        self.asset_store = asset_store
        self.validity = validity or ValidityRecorder(content_store, asset_store)

    def get_badge(self, record_id: int):
        record = self.content_store.get_record(record_id)
        if record is None:
            raise RecordNotFound(f"Badge {record_id} does not exist.")
        return record

    def create_badge(
        self,
        title: str = "",
        criteria: str = "",
        description: str | None = None,
        version: str | None = None,
    ) -> SaveOutcome:
        """Create a draft badge and run the save hook"""
        record = self.content_store.create_record(title=title, criteria=criteria)
        self._apply_meta(record.id, description, version)
        return self._after_save(record)

    def save_badge(
        self,
        record_id: int,
        title: str | None = None,
        criteria: str | None = None,
        status: str | None = None,
        description: str | None = None,
        version: str | None = None,
    ) -> SaveOutcome:
        """Apply an editor save. Fields left as None are not touched."""
        record = self.get_badge(record_id)

        if title is not None:
            record.title = title
        if criteria is not None:
            record.criteria = criteria
        if status is not None:
            record.status = status
        record = self.content_store.save_record(record)

        self._apply_meta(record.id, description, version)
        return self._after_save(record)

    def remove_image(self, record_id: int) -> SaveOutcome:
        """Detach the badge image; the asset itself stays in the store"""
        record = self.get_badge(record_id)
        if self.asset_store.remove_record_image(record.id):
            logger.info("Badge %s image removed", record.id)
        record = self.get_badge(record.id)
        return self._after_save(record)

    def image_url(self, record) -> str | None:
        if not record.image_asset_id:
            return None
        return self.asset_store.get_asset_url(record.image_asset_id)

    def _apply_meta(
        self, record_id: int, description: str | None, version: str | None
    ) -> None:
        if version is not None:
            persist_version(self.content_store, record_id, normalize_version(version))

        if description is not None:
            description = strip_tags(description)
            if description:
                self.content_store.set_meta(record_id, DESCRIPTION_META_KEY, description)
            else:
                self.content_store.delete_meta(record_id, DESCRIPTION_META_KEY)

    def _after_save(self, record) -> SaveOutcome:
        snapshot = self.validity.record(record)
        return SaveOutcome(
            record=record,
            validity=snapshot,
            warnings=self.warnings_for(record, snapshot),
        )

    def warnings_for(self, record, snapshot: ValiditySnapshot | None) -> list[ValidationWarning]:
        """Editor warnings; only published badges get them"""
        if snapshot is None or record.status != settings.BADGE_PUBLISHED_STATUS:
            return []
        return build_warnings(snapshot)

    def get_version(self, record_id: int) -> str | None:
        return self.content_store.get_meta(record_id, VERSION_META_KEY)

    def get_description(self, record) -> str:
        """Description metadata, falling back to the criteria text for old badges"""
        description = self.content_store.get_meta(record.id, DESCRIPTION_META_KEY)
        if not description:
            description = strip_line_breaks(strip_tags(record.criteria))
        return description

    def display_title(self, record) -> str:
        version = self.get_version(record.id)
        if not version:
            return record.title
        return f"{record.title} (Version {version})"

    def list_badges(self, status: str | None = None) -> list[dict]:
        """Listing rows with version and the stored invalid state"""
        rows = []
        for record in self.content_store.list_records(status):
            invalid = (
                record.status == settings.BADGE_PUBLISHED_STATUS
                and not self.validity.is_marked_valid(record.id)
            )
            rows.append(
                {
                    "id": record.id,
                    "title": record.title,
                    "status": record.status,
                    "version": self.get_version(record.id),
                    "invalid": invalid,
                    "states": ["invalid"] if invalid else [],
                }
            )
        return rows

    def designer_launch(self, record, email: str | None = None) -> dict:
        """Designer link and nonce; no link once the badge has an image"""
        has_image = bool(record.image_asset_id)
        designer_url = None
        nonce = None
        if not has_image:
            query = {"format": "json", "origin": settings.SITE_URL}
            if email:
                query["email"] = email
            designer_url = f"{settings.DESIGNER_URL}?{urlencode(query)}"
            nonce = create_nonce(DESIGNER_ACTION, record.id)
        return {
            "record_id": record.id,
            "has_image": has_image,
            "designer_url": designer_url,
            "designer_origin": settings.DESIGNER_ORIGIN,
            "nonce": nonce,
        }
