"""Tagged assistant failures."""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal[
    "missing-credential",
    "credential-is-variable-name",
    "credential-format-invalid",
    "provider-rejected",
    "empty-response",
    "unclassified",
]

CREDENTIAL_KINDS: frozenset[str] = frozenset(
    {"missing-credential", "credential-is-variable-name", "credential-format-invalid", "provider-rejected"}
)

REMEDIATIONS: dict[str, str] = {
    "missing-credential": (
        "The coach needs a Gemini API key. Set GEMINI_API_KEY in your environment or .env file, "
        "or enter a key now with :key."
    ),
    "credential-is-variable-name": (
        "The configured key looks like a variable name, not a key value. Put the key itself "
        "(it starts with 'AIza') into GEMINI_API_KEY, not the name of another variable."
    ),
    "credential-format-invalid": (
        "The configured key does not look like a Gemini API key (expected it to start with 'AIza'). "
        "Copy it again from Google AI Studio."
    ),
    "provider-rejected": (
        "Gemini rejected the key. Check that it belongs to a project with the Gemini API enabled "
        "and billing set up (https://ai.google.dev/gemini-api/docs/billing), then enter it again with :key."
    ),
    "empty-response": "The coach stayed silent this time. Try asking again in a moment.",
    "unclassified": "The connection was interrupted. Try again in a moment.",
}


class AssistantError(Exception):
    """Assistant failure carrying a kind and free-form detail."""

    def __init__(self, kind: ErrorKind, detail: str = "") -> None:
        """Initialize with failure kind and detail."""
        super().__init__(f"{kind}: {detail}" if detail else kind)
        self.kind: ErrorKind = kind
        self.detail = detail

    @property
    def needs_credential(self) -> bool:
        """Whether the view should offer credential entry."""
        return self.kind in CREDENTIAL_KINDS


def remediation(kind: str) -> str:
    """Return user-facing remediation text for a failure kind."""
    return REMEDIATIONS.get(kind, REMEDIATIONS["unclassified"])
