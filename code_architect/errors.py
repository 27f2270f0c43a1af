"""Exception hierarchy for Code Architect.

Every failure that terminates a generate, enhance, or archive-decode call is
raised as a subclass of :class:`ArchitectError`.  The string form of each
exception is a single human-readable sentence suitable for showing directly
to the user.
"""

from __future__ import annotations


class ArchitectError(Exception):
    """Base class for all Code Architect errors."""


class PreconditionError(ArchitectError):
    """A local precondition failed before any I/O was attempted.

    Raised for a missing API key on the active provider, an unknown
    provider tag, or an invalid environment override.
    """


class TransportError(ArchitectError):
    """The remote provider could not be reached or returned a non-2xx status."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"AI Error ({provider}): {message}")


class RateLimitError(ArchitectError):
    """The provider rejected the request because a quota was exhausted.

    Carries a remediation ``hint`` that tells the user to supply a personal
    API key for the provider.
    """

    def __init__(self, provider: str, detail: str = "") -> None:
        self.provider = provider
        self.detail = detail
        self.hint = (
            f"Add your own {provider} API key with "
            f"'code-architect settings set {provider}.api_key <KEY>'."
        )
        super().__init__(f"System quota exceeded for {provider}. {self.hint}")


class EmptyResponseError(ArchitectError):
    """The provider returned no text at all."""


class InvalidJsonError(ArchitectError):
    """The provider text could not be parsed as JSON, even after fence stripping.

    The untouched provider text is kept on ``raw_text`` for diagnostics.
    """

    def __init__(self, raw_text: str, reason: str = "") -> None:
        self.raw_text = raw_text
        self.reason = reason
        super().__init__("AI generated invalid JSON. Please try again.")


class BlueprintShapeError(ArchitectError):
    """Parsed provider output does not have the shape of a blueprint."""


class ArchiveOpenError(ArchitectError):
    """An uploaded archive is corrupt or is not a zip file."""
