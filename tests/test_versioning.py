from __future__ import annotations

import pytest
from semver import Version

from toolkit_cli.versioning import (
    VersionObject,
    get_current_version,
    is_valid_release_type,
    sort_versions,
)


def test_version_object_strips_tag_prefix():
    v = VersionObject("v1.2.3")
    assert v.version == "1.2.3"
    assert v.tag == "v1.2.3"
    assert v.semver == Version(1, 2, 3)


def test_version_object_from_semver():
    assert VersionObject(Version(2, 0, 0)).tag == "v2.0.0"


@pytest.mark.parametrize(
    ("release", "expected"),
    [("patch", "v1.2.4"), ("minor", "v1.3.0"), ("major", "v2.0.0")],
)
def test_get_next_version(release, expected):
    assert VersionObject("1.2.3").get_next_version(release).tag == expected


def test_prerelease_starts_at_zero():
    assert VersionObject("1.2.3").get_next_minor("rc").version == "1.3.0-rc.0"
    assert VersionObject("1.2.3").get_next_major("beta").tag == "v2.0.0-beta.0"
    assert VersionObject("1.2.3").get_next_patch().version == "1.2.4"


def test_invalid_release_type_raises():
    with pytest.raises(ValueError):
        VersionObject("1.2.3").get_next_version("huge")
    assert is_valid_release_type("minor")
    assert not is_valid_release_type("huge")


def test_invalid_version_raises():
    with pytest.raises(ValueError):
        get_current_version("not-a-version")


def test_sort_versions_ascending_as_tags():
    assert sort_versions("1.10.0", "v1.2.0", "1.9.9", "1.2.0-rc.0") == [
        "v1.2.0-rc.0",
        "v1.2.0",
        "v1.9.9",
        "v1.10.0",
    ]
