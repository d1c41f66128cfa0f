"""
Version Codec

Packs four 16-bit version components into the integers stored in the
archive header.

    u64: major << 48 | minor << 32 | build << 16 | revision
    u32: major << 16 | minor

Negative (absent) components encode as 0; components wider than 16 bits
are truncated, so callers needing round-trip fidelity must validate first.
"""

from typing import NamedTuple, Optional


class Version(NamedTuple):
    """Four-part version number. Compares component-wise."""
    major: int
    minor: int
    build: int = 0
    revision: int = 0

    @classmethod
    def parse(cls, text: str) -> 'Version':
        """
        Parse "major.minor[.build[.revision]]".

        Raises:
            ValueError: fewer than two or more than four components, or a
                component that is not a non-negative integer
        """
        parts = text.strip().split('.')
        if not 2 <= len(parts) <= 4:
            raise ValueError(f"Invalid version string: {text!r}")

        components = []
        for part in parts:
            if not part.isdigit():
                raise ValueError(f"Invalid version string: {text!r}")
            components.append(int(part))

        return cls(*components)

    @classmethod
    def try_parse(cls, text: Optional[str]) -> Optional['Version']:
        """Like parse() but returns None for empty or malformed input."""
        if not text:
            return None
        try:
            return cls.parse(text)
        except ValueError:
            return None

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}.{self.revision}"

    def to_string(self, field_count: int = 4) -> str:
        """Dotted form using the first field_count components."""
        return '.'.join(str(c) for c in self[:field_count])


def _component(value: int) -> int:
    return max(value, 0) & 0xFFFF


def encode64(version: Version) -> int:
    """Pack all four components into a u64, major most significant."""
    packed = 0
    for value in (version.major, version.minor, version.build, version.revision):
        packed = (packed << 16) | _component(value)
    return packed


def encode32(version: Version) -> int:
    """Pack (major, minor) into a u32."""
    return (_component(version.major) << 16) | _component(version.minor)


def decode64(packed: int) -> Version:
    """Inverse of encode64()."""
    return Version(
        (packed >> 48) & 0xFFFF,
        (packed >> 32) & 0xFFFF,
        (packed >> 16) & 0xFFFF,
        packed & 0xFFFF,
    )


def decode32(packed: int) -> Version:
    """Inverse of encode32(). Build and revision decode to 0."""
    return Version((packed >> 16) & 0xFFFF, packed & 0xFFFF)
