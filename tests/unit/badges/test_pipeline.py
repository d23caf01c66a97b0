"""Designer publication, end to end against the SQLite stores"""

import pytest

from badgepress.badges.errors import (
    AttachmentError,
    DecodeError,
    IngestionError,
    MalformedPayload,
    PayloadError,
    RecordNotFound,
    StagingError,
    UnsupportedEncoding,
)
from badgepress.badges.pipeline import DesignerPublishPipeline
from badgepress.badges.validity import VALID_META_KEY
from badgepress.core.data.models import Asset
from badgepress.core.data.repositories import AssetRepository


class RefusingAssetRepository(AssetRepository):
    """Stores assets but never lets a record point at them"""

    def set_record_image(self, record_id: int, asset_id: int) -> bool:
        return False


@pytest.fixture
def pipeline(record_repo, asset_repo, staging_dir):
    _ = staging_dir
    return DesignerPublishPipeline(record_repo, asset_repo)


@pytest.mark.unit
def test_publish_sets_image_and_validity(
    pipeline, record_repo, asset_repo, published_record, designer_message, staging_dir
):
    result = pipeline.publish(designer_message, published_record.id)

    record = record_repo.get_record(published_record.id)
    assert record.image_asset_id == result.asset_id
    assert result.record_id == published_record.id
    assert result.image_set == {"asset_id": result.asset_id, "has_image": True}
    assert result.validity.has_image
    assert result.validity.image_is_png
    assert result.validity.overall
    assert record_repo.get_meta(record.id, VALID_META_KEY) == "1"

    asset = asset_repo.get_asset(result.asset_id)
    assert asset.title == "quick-learner"
    assert asset.mime_type == "image/png"
    assert list(staging_dir.iterdir()) == []


@pytest.mark.unit
def test_publish_result_dict(pipeline, published_record, designer_message):
    data = pipeline.publish(designer_message, published_record.id).to_dict()

    assert set(data) == {"asset_id", "record_id", "image_set", "validity"}
    assert data["validity"]["overall"] is True


@pytest.mark.unit
def test_publish_uses_secondary_labels(pipeline, asset_repo, published_record, png_data_uri):
    message = {
        "image": png_data_uri,
        "badgeText": {"value": "100"},
        "text": {"value": "Level", "value2": "One"},
    }

    result = pipeline.publish(message, published_record.id)

    assert asset_repo.get_asset(result.asset_id).title == "level-one"


@pytest.mark.unit
def test_publish_on_draft_keeps_badge_invalid(
    pipeline, record_repo, designer_message
):
    record = record_repo.create_record(title="Draft", criteria="Do it")

    result = pipeline.publish(designer_message, record.id)

    assert result.validity.has_image
    assert not result.validity.is_published
    assert not result.validity.overall


@pytest.mark.unit
def test_missing_record_id(pipeline, db, designer_message):
    with pytest.raises(PayloadError):
        pipeline.publish(designer_message, None)

    assert db.query(Asset).count() == 0


@pytest.mark.unit
def test_unknown_record(pipeline, db, designer_message):
    with pytest.raises(RecordNotFound) as exc_info:
        pipeline.publish(designer_message, 999)

    assert exc_info.value.status_code == 404
    assert db.query(Asset).count() == 0


@pytest.mark.unit
@pytest.mark.parametrize(
    "message,error",
    [
        (None, PayloadError),
        ({}, PayloadError),
        ({"badgeText": {"value": "No image"}}, PayloadError),
        ({"image": "https://example.com/badge.png"}, MalformedPayload),
        ({"image": 12}, MalformedPayload),
        ({"image": "data:image/png;base64"}, MalformedPayload),
        ({"image": "data:image/png;hex,00ff"}, UnsupportedEncoding),
        ({"image": "data:image/png;base64,%%%"}, DecodeError),
        ({"image": "data:image/png;base64,aGVsbG8gd29ybGQ="}, IngestionError),
        ({"image": "data:image/png;base64,"}, IngestionError),
    ],
)
def test_failures_leave_nothing_behind(
    pipeline, db, record_repo, published_record, staging_dir, message, error
):
    with pytest.raises(error):
        pipeline.publish(message, published_record.id)

    assert list(staging_dir.iterdir()) == []
    assert db.query(Asset).count() == 0
    assert record_repo.get_record(published_record.id).image_asset_id is None


@pytest.mark.unit
def test_bad_label_shape_is_payload_error(pipeline, published_record, png_data_uri):
    with pytest.raises(PayloadError):
        pipeline.publish({"image": png_data_uri, "badgeText": "flat"}, published_record.id)


@pytest.mark.unit
def test_attach_failure_keeps_asset(
    db, record_repo, upload_dir, staging_dir, published_record, designer_message
):
    asset_repo = RefusingAssetRepository(db, str(upload_dir))
    pipeline = DesignerPublishPipeline(record_repo, asset_repo)

    with pytest.raises(AttachmentError) as exc_info:
        pipeline.publish(designer_message, published_record.id)

    assert exc_info.value.asset_id is not None
    assert asset_repo.get_asset(exc_info.value.asset_id) is not None
    assert record_repo.get_record(published_record.id).image_asset_id is None
    assert list(staging_dir.iterdir()) == []


@pytest.mark.unit
def test_unusable_staging_dir(record_repo, asset_repo, tmp_path, published_record, designer_message):
    pipeline = DesignerPublishPipeline(
        record_repo, asset_repo, staging_dir=str(tmp_path / "missing")
    )

    with pytest.raises(StagingError):
        pipeline.publish(designer_message, published_record.id)


@pytest.mark.unit
def test_custom_encoding_registry(
    record_repo, asset_repo, staging_dir, published_record, png_bytes
):
    encodings = {"hex": bytes.fromhex}
    pipeline = DesignerPublishPipeline(record_repo, asset_repo, encodings=encodings)

    result = pipeline.publish(
        {"image": f"data:image/png;hex,{png_bytes.hex()}"}, published_record.id
    )

    assert result.validity.has_image


@pytest.mark.unit
def test_oversized_image_is_an_ingestion_error(
    pipeline, db, record_repo, published_record, staging_dir, header_only_png, data_uri
):
    message = {"image": data_uri(header_only_png(30000, 30000))}

    with pytest.raises(IngestionError) as exc_info:
        pipeline.publish(message, published_record.id)

    assert exc_info.value.code == "ingestion_error"
    assert list(staging_dir.iterdir()) == []
    assert db.query(Asset).count() == 0
    assert record_repo.get_record(published_record.id).image_asset_id is None
