"""Badge validity

A badge is usable only when all six facets hold: it has an image, the image
is a PNG, it has a description, the description fits, it has criteria, and
it is published. The snapshot is recomputed and stored on every save; list
views only read the stored flag.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass

from badgepress.badges.stores import AssetStore, ContentStore
from badgepress.config import settings
from badgepress.core.utils import strip_tags

logger = logging.getLogger(__name__)

DESCRIPTION_META_KEY = "badgepress-badge-description"
VALID_META_KEY = "badgepress-badge-valid"
VALIDITY_META_KEY = "badgepress-badge-validity"


@dataclass(frozen=True)
class BadgeState:
    """Inputs of the validity check, as persisted"""

    image_asset_id: int | None
    image_file: str | None
    description: str
    criteria: str
    status: str


@dataclass(frozen=True)
class ValiditySnapshot:
    has_image: bool
    image_is_png: bool
    has_description: bool
    description_length_ok: bool
    has_criteria: bool
    is_published: bool

    @property
    def overall(self) -> bool:
        return (
            self.has_image
            and self.image_is_png
            and self.has_description
            and self.description_length_ok
            and self.has_criteria
            and self.is_published
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["overall"] = self.overall
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ValiditySnapshot":
        return cls(
            has_image=bool(data.get("has_image")),
            image_is_png=bool(data.get("image_is_png", True)),
            has_description=bool(data.get("has_description")),
            description_length_ok=bool(data.get("description_length_ok")),
            has_criteria=bool(data.get("has_criteria")),
            is_published=bool(data.get("is_published")),
        )


@dataclass(frozen=True)
class ValidationWarning:
    """Non-fatal problem shown to the editor after a save"""

    facet: str
    message: str

    def to_dict(self) -> dict:
        return {"facet": self.facet, "message": self.message}


def evaluate_validity(
    state: BadgeState,
    max_description_length: int | None = None,
    published_status: str | None = None,
) -> ValiditySnapshot:
    """Compute the validity facets of a badge. Pure; nothing is written."""
    if max_description_length is None:
        max_description_length = settings.BADGE_DESCRIPTION_MAX_LENGTH
    published_status = published_status or settings.BADGE_PUBLISHED_STATUS

    has_image = bool(state.image_asset_id) and bool(state.image_file)
    # without an image only has_image fails
    image_is_png = True
    if has_image:
        _, ext = os.path.splitext(state.image_file)
        image_is_png = ext.lstrip(".").lower() == "png"

    description = state.description or ""
    criteria = strip_tags(state.criteria).strip()

    return ValiditySnapshot(
        has_image=has_image,
        image_is_png=image_is_png,
        has_description=bool(description),
        description_length_ok=len(description) <= max_description_length,
        has_criteria=bool(criteria),
        is_published=state.status == published_status,
    )


def build_warnings(
    snapshot: ValiditySnapshot, max_description_length: int | None = None
) -> list[ValidationWarning]:
    """Editor-facing messages for every failing facet except publication"""
    if max_description_length is None:
        max_description_length = settings.BADGE_DESCRIPTION_MAX_LENGTH

    warnings = []
    if not snapshot.has_image:
        warnings.append(ValidationWarning("has_image", "You must set a badge image."))
    if not snapshot.image_is_png:
        warnings.append(
            ValidationWarning(
                "image_is_png", "You must set a badge image that is a PNG file."
            )
        )
    if not snapshot.has_description:
        warnings.append(
            ValidationWarning("has_description", "You must enter a badge description.")
        )
    if not snapshot.description_length_ok:
        warnings.append(
            ValidationWarning(
                "description_length_ok",
                f"The description cannot be longer than {max_description_length} characters.",
            )
        )
    if not snapshot.has_criteria:
        warnings.append(
            ValidationWarning("has_criteria", "You must enter the badge criteria.")
        )
    return warnings


class ValidityRecorder:
    """Save hook: recompute a record's validity and store it"""

    def __init__(self, content_store: ContentStore, asset_store: AssetStore):
        self.content_store = content_store
        self.asset_store = asset_store

    def load_state(self, record) -> BadgeState:
        """Gather the persisted inputs of the validity check"""
        image_file = None
        if record.image_asset_id:
            image_file = self.asset_store.get_asset_file(record.image_asset_id)
        return BadgeState(
            image_asset_id=record.image_asset_id,
            image_file=image_file,
            description=self.content_store.get_meta(record.id, DESCRIPTION_META_KEY)
            or "",
            criteria=record.criteria or "",
            status=record.status,
        )

    def evaluate(self, record) -> ValiditySnapshot:
        return evaluate_validity(self.load_state(record))

    def record(self, record) -> ValiditySnapshot:
        """Evaluate and persist; returns the new snapshot"""
        snapshot = self.evaluate(record)
        self.content_store.set_meta(
            record.id, VALID_META_KEY, "1" if snapshot.overall else ""
        )
        self.content_store.set_meta(
            record.id, VALIDITY_META_KEY, json.dumps(snapshot.to_dict(), sort_keys=True)
        )
        logger.info("Badge %s validity recorded: valid=%s", record.id, snapshot.overall)
        return snapshot

    def stored(self, record_id: int) -> ValiditySnapshot | None:
        """Snapshot as of the last save, if any"""
        raw = self.content_store.get_meta(record_id, VALIDITY_META_KEY)
        if not raw:
            return None
        try:
            return ValiditySnapshot.from_dict(json.loads(raw))
        except (json.JSONDecodeError, TypeError, AttributeError):
            logger.warning("Ignoring unreadable validity snapshot for badge %s", record_id)
            return None

    def is_marked_valid(self, record_id: int) -> bool:
        return bool(self.content_store.get_meta(record_id, VALID_META_KEY))
