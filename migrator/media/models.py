from dataclasses import dataclass, field
from typing import Any

DocumentValue = Any
"""Any value fetched from the document store: dict, list, str, number, bool, None."""


@dataclass(frozen=True)
class DataURI:
    """Decoded `data:<mime>;base64,<payload>` string."""

    mime_type: str
    payload: bytes


@dataclass(frozen=True)
class BlobReference:
    """Stable pointer to a stored blob."""

    name: str
    public_path: str


@dataclass
class TransformResult:
    """Output of one tree walk over a single document."""

    value: DocumentValue
    changed: bool = False
    extracted: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class MigrationStats:
    """Accumulates counters for one orchestrator run."""

    processed: int = 0
    migrated: int = 0
    extracted: int = 0
    errors: list[str] = field(default_factory=list)
    fatal_error: str | None = None

    def to_dict(self) -> dict[str, object]:
        """JSON-ready view of the stats."""
        payload: dict[str, object] = {
            "processed": self.processed,
            "migrated": self.migrated,
            "extracted": self.extracted,
            "errors": list(self.errors),
        }
        if self.fatal_error is not None:
            payload["fatal_error"] = self.fatal_error
        return payload
