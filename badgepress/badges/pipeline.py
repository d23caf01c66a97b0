"""Badge designer publication pipeline

One call handles one designer submission, strictly in order:

1. read the designer message and require an inline ``image``
2. decode the data URI
3. stage the bytes in a temporary ``.png`` file
4. ingest the staged file as an asset and set it as the badge image
5. recompute and store the badge's validity

The first failure ends the call with a `BadgeError`. The staged file is gone
once `publish` returns or raises. An asset created before a failed attach is
kept and reported through `AttachmentError.asset_id`.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from badgepress.badges.datauri import EncodingHandler, decode_data_uri, has_data_uri_scheme
from badgepress.badges.errors import MalformedPayload, PayloadError, RecordNotFound
from badgepress.badges.ingestion import AssetIngestor, IngestionOptions
from badgepress.badges.schemas import DesignerPayload
from badgepress.badges.staging import stage_bytes
from badgepress.badges.stores import AssetStore, ContentStore
from badgepress.badges.validity import ValidityRecorder, ValiditySnapshot

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    asset_id: int
    record_id: int
    validity: ValiditySnapshot
    image_set: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "asset_id": self.asset_id,
            "record_id": self.record_id,
            "image_set": self.image_set,
            "validity": self.validity.to_dict(),
        }


class DesignerPublishPipeline:
    """Publishes a designed badge image onto a badge record"""

    def __init__(
        self,
        content_store: ContentStore,
        asset_store: AssetStore,
        validity: ValidityRecorder | None = None,
        encodings: dict[str, EncodingHandler] | None = None,
        staging_dir: str | None = None,
        options: IngestionOptions | None = None,
    ):
        self.content_store = content_store
        self.asset_store = asset_store
        self.validity = validity or ValidityRecorder(content_store, asset_store)
        self.encodings = encodings
        self.staging_dir = staging_dir
        # PNG only, whatever the designer declares
        self.options = options or IngestionOptions()
        self.ingestor = AssetIngestor(asset_store)

    def _read_payload(self, badge_data: dict | None) -> DesignerPayload:
        if not badge_data:
            raise PayloadError("Error decoding the badge designer data.")
        try:
            payload = DesignerPayload.model_validate(badge_data)
        except ValidationError as e:
            raise PayloadError("Error decoding the badge designer data.") from e
        if payload.image is None:
            raise PayloadError("The badge designer data has no image.")
        if not has_data_uri_scheme(payload.image):
            raise MalformedPayload("Error decoding the badge designer image data.")
        return payload

    def publish(self, badge_data: dict | None, record_id: int | None) -> PublishResult:
        """Run the pipeline for one designer message.

        Args:
            badge_data: the designer message (image + labels)
            record_id: badge record that receives the image

        Raises:
            BadgeError subclasses, see `badgepress.badges.errors`
        """
        if record_id is None:
            raise PayloadError("No badge record was given for the designer image.")
        record = self.content_store.get_record(record_id)
        if record is None:
            raise RecordNotFound(f"Badge {record_id} does not exist.")

        payload = self._read_payload(badge_data)
        data, media_type = decode_data_uri(payload.image, self.encodings)

        with stage_bytes(
            data, suffix=".png", media_type=media_type, directory=self.staging_dir
        ) as staged_file:
            result = self.ingestor.ingest(
                staged_file,
                record_id=record.id,
                labels=payload.labels(),
                options=self.options,
            )

        # the image changed, so does validity
        record = self.content_store.get_record(record.id)
        snapshot = self.validity.record(record)

        logger.info("Badge %s image set to asset %s", record.id, result.asset_id)
        return PublishResult(
            asset_id=result.asset_id,
            record_id=record.id,
            validity=snapshot,
            image_set={
                "asset_id": result.asset_id,
                "has_image": record.image_asset_id == result.asset_id,
            },
        )
