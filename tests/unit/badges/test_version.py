import pytest

from badgepress.badges.version import VERSION_META_KEY, normalize_version, persist_version


@pytest.mark.unit
@pytest.mark.parametrize(
    "submitted,expected",
    [
        ("3", "3.0"),
        ("10", "10.0"),
        ("2.1", "2.1"),
        ("2.1.4", "2.1.4"),
        ("", "1.0"),
        (None, "1.0"),
        ("v2", "1.0"),
        ("1.", "1.0"),
        (".5", "1.0"),
        ("1.a", "1.0"),
        ("3\n", "1.0"),
        (" 3", "1.0"),
    ],
)
def test_normalize_version(submitted, expected):
    assert normalize_version(submitted) == expected


@pytest.mark.unit
def test_normalize_version_custom_default():
    assert normalize_version("beta", default="0.1") == "0.1"


@pytest.mark.unit
def test_persist_version_lifecycle(record_repo):
    record = record_repo.create_record(title="Versioned")

    assert persist_version(record_repo, record.id, "1.0") == "added"
    assert record_repo.get_meta(record.id, VERSION_META_KEY) == "1.0"

    assert persist_version(record_repo, record.id, "1.0") == "unchanged"

    assert persist_version(record_repo, record.id, "2.0") == "updated"
    assert record_repo.get_meta(record.id, VERSION_META_KEY) == "2.0"

    assert persist_version(record_repo, record.id, "") == "deleted"
    assert record_repo.get_meta(record.id, VERSION_META_KEY) is None

    assert persist_version(record_repo, record.id, "") == "unchanged"


@pytest.mark.unit
@pytest.mark.parametrize("submitted", ["٣", "١.٢", "３", "1.٢"])
def test_non_ascii_digits_fall_back_to_default(submitted):
    assert normalize_version(submitted) == "1.0"
