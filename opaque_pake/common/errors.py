"""Error taxonomy: malformed input vs. authentication failure."""


class OpaqueError(Exception):
    """Base class for every error raised by the protocol core."""


class MalformedMessageError(OpaqueError, ValueError):
    """A byte string did not parse as the expected message, state or element."""

    def __init__(self, kind: str = "message"):
        super().__init__(f"malformed {kind}")
        self.kind = kind


class AuthenticationError(OpaqueError):
    """Wrong password, tampered message or mismatched identifiers/context.

    The message is fixed so callers cannot tell which check failed.
    """

    def __init__(self):
        super().__init__("authentication failed")


class Hash2CurveError(OpaqueError):
    """Hash-to-curve called with parameters outside the suite's limits."""
