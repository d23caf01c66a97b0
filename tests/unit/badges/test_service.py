from urllib.parse import parse_qs, urlparse

import pytest

from badgepress.badges.errors import RecordNotFound
from badgepress.badges.pipeline import DesignerPublishPipeline
from badgepress.badges.service import BadgeService
from badgepress.badges.validity import DESCRIPTION_META_KEY, VALIDITY_META_KEY
from badgepress.badges.version import VERSION_META_KEY
from badgepress.core.auth.nonce import DESIGNER_ACTION, verify_nonce


@pytest.fixture
def service(record_repo, asset_repo):
    return BadgeService(record_repo, asset_repo)


@pytest.mark.unit
def test_create_badge_is_draft_without_warnings(service, record_repo):
    outcome = service.create_badge(title="Helper", criteria="Help out", description="Nice")

    assert outcome.record.status == "draft"
    assert outcome.warnings == []
    assert not outcome.validity.overall
    assert record_repo.get_meta(outcome.record.id, VALIDITY_META_KEY) is not None


@pytest.mark.unit
def test_publishing_incomplete_badge_warns(service):
    record = service.create_badge(title="Helper").record

    outcome = service.save_badge(record.id, status="published")

    assert outcome.record.status == "published"
    assert [w.message for w in outcome.warnings] == [
        "You must set a badge image.",
        "You must enter a badge description.",
        "You must enter the badge criteria.",
    ]


@pytest.mark.unit
def test_save_leaves_omitted_fields(service):
    record = service.create_badge(title="Helper", criteria="Help out").record

    outcome = service.save_badge(record.id, title="Great Helper")

    assert outcome.record.title == "Great Helper"
    assert outcome.record.criteria == "Help out"


@pytest.mark.unit
def test_description_is_stripped_and_cleared(service, record_repo):
    record = service.create_badge(title="Helper", description="<em>Nice</em> work").record

    assert record_repo.get_meta(record.id, DESCRIPTION_META_KEY) == "Nice work"

    service.save_badge(record.id, description="<br/>")
    assert record_repo.get_meta(record.id, DESCRIPTION_META_KEY) is None


@pytest.mark.unit
def test_description_falls_back_to_criteria(service):
    record = service.create_badge(title="Helper", criteria="<p>Help\nout</p>").record

    assert service.get_description(record) == "Helpout"


@pytest.mark.unit
def test_version_is_normalized(service, record_repo):
    record = service.create_badge(title="Helper", version="2").record

    assert service.get_version(record.id) == "2.0"
    assert service.display_title(record) == "Helper (Version 2.0)"

    service.save_badge(record.id, version="nonsense")
    assert record_repo.get_meta(record.id, VERSION_META_KEY) == "1.0"


@pytest.mark.unit
def test_display_title_without_version(service):
    record = service.create_badge(title="Helper").record

    assert service.display_title(record) == "Helper"


@pytest.mark.unit
def test_get_badge_missing(service):
    with pytest.raises(RecordNotFound):
        service.get_badge(404)


@pytest.mark.unit
def test_list_badges_marks_invalid_published(service):
    draft = service.create_badge(title="Draft").record
    published = service.create_badge(title="Published").record
    service.save_badge(published.id, status="published", version="3")

    rows = {row["id"]: row for row in service.list_badges()}

    assert rows[draft.id]["invalid"] is False
    assert rows[published.id]["invalid"] is True
    assert rows[published.id]["states"] == ["invalid"]
    assert rows[published.id]["version"] == "3.0"
    assert [row["id"] for row in service.list_badges("published")] == [published.id]


@pytest.mark.unit
def test_designer_launch_for_badge_without_image(service):
    record = service.create_badge(title="Helper").record

    launch = service.designer_launch(record, email="editor@example.com")

    assert launch["has_image"] is False
    assert launch["designer_origin"] == "https://www.openbadges.me"
    query = parse_qs(urlparse(launch["designer_url"]).query)
    assert query["format"] == ["json"]
    assert query["email"] == ["editor@example.com"]
    assert verify_nonce(launch["nonce"], DESIGNER_ACTION, record.id)


@pytest.mark.unit
def test_designer_launch_for_badge_with_image(service):
    record = service.create_badge(title="Helper").record
    record.image_asset_id = 1

    launch = service.designer_launch(record)

    assert launch["has_image"] is True
    assert launch["designer_url"] is None
    assert launch["nonce"] is None


@pytest.mark.unit
def test_remove_image_recomputes_validity(
    service, record_repo, asset_repo, published_record, designer_message, staging_dir
):
    _ = staging_dir
    result = DesignerPublishPipeline(record_repo, asset_repo).publish(
        designer_message, published_record.id
    )
    assert service.validity.is_marked_valid(published_record.id)

    outcome = service.remove_image(published_record.id)

    assert outcome.record.image_asset_id is None
    assert not outcome.validity.has_image
    assert not service.validity.is_marked_valid(published_record.id)
    assert [w.facet for w in outcome.warnings] == ["has_image"]
    assert asset_repo.get_asset(result.asset_id) is not None
    assert service.image_url(outcome.record) is None


@pytest.mark.unit
def test_remove_image_without_image(service):
    record = service.create_badge(title="Helper").record

    outcome = service.remove_image(record.id)

    assert outcome.record.image_asset_id is None
    assert not outcome.validity.has_image
