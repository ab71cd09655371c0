"""Error types raised while turning traces into graphs."""

from __future__ import annotations


class TraceGraphError(Exception):
    """Base error for the package."""


class DecodeError(TraceGraphError, ValueError):
    """Raised when a raw encoded value does not match any known shape."""


class UnknownVariantError(DecodeError):
    """Raised when a raw value carries a tag outside the profile's closed set."""

    def __init__(self, profile: str, tag: object):
        self.profile = profile
        self.tag = tag
        super().__init__(f"Unknown {profile} variable kind: {tag!r}")


class TraceFormatError(DecodeError):
    """Raised when a whole trace payload is not a valid execution trace."""


class IdentityConflictError(DecodeError):
    """Raised when one address or ref would be owned by two different nodes."""

    def __init__(self, key: str, existing: str, incoming: str):
        self.key = key
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"Address {key} already owned by {existing}, cannot assign to {incoming}"
        )


class NavigationError(TraceGraphError):
    """Raised when the step navigator is used before a trace is loaded."""
