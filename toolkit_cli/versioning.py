from __future__ import annotations

from typing import Literal

from semver import Version

ReleaseType = Literal["major", "minor", "patch"]

VALID_RELEASE_TYPES: tuple[str, ...] = ("major", "minor", "patch")

_BUMP_BY_RELEASE_TYPE = {
    "major": Version.bump_major,
    "minor": Version.bump_minor,
    "patch": Version.bump_patch,
}


class VersionObject:
    """A semantic version plus its ``v``-prefixed tag.

    >>> VersionObject("1.2.3").get_next_minor().tag
    'v1.3.0'
    >>> VersionObject("1.2.3").get_next_patch("rc").version
    '1.2.4-rc.0'
    """

    def __init__(self, raw_version: str | Version) -> None:
        if isinstance(raw_version, Version):
            self.semver = raw_version
            self.version = str(raw_version)
        else:
            raw = str(raw_version).strip()
            if raw[:1] in ("v", "V"):
                raw = raw[1:]
            self.semver = Version.parse(raw)
            self.version = raw
        self.tag = f"v{self.version}"

    def __repr__(self) -> str:
        return f"VersionObject({self.version!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VersionObject):
            return self.semver == other.semver
        return NotImplemented

    def get_next_version(self, release_type: ReleaseType, prerelease: str | None = None) -> VersionObject:
        if not is_valid_release_type(release_type):
            raise ValueError(f"invalid release type: {release_type!r}")
        nxt = _BUMP_BY_RELEASE_TYPE[release_type](self.semver)
        if prerelease:
            nxt = nxt.replace(prerelease=f"{prerelease}.0")
        return VersionObject(nxt)

    def get_next_patch(self, prerelease: str | None = None) -> VersionObject:
        return self.get_next_version("patch", prerelease)

    def get_next_minor(self, prerelease: str | None = None) -> VersionObject:
        return self.get_next_version("minor", prerelease)

    def get_next_major(self, prerelease: str | None = None) -> VersionObject:
        return self.get_next_version("major", prerelease)


def get_current_version(version: str) -> VersionObject:
    return VersionObject(version)


def is_valid_release_type(value: str) -> bool:
    return value in VALID_RELEASE_TYPES


def sort_versions(*versions: str) -> list[str]:
    """Sort version strings ascending and return them as tags."""
    parsed = sorted(VersionObject(v).semver for v in versions)
    return [f"v{v}" for v in parsed]
