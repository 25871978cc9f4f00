# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that
# flows through a single tool call.  None of them outlives the call that
# created it: a request is built, sent, the response is reshaped into text,
# and everything is discarded.
#
# WHY DATACLASSES?
#   - They auto-generate __init__, __repr__, and __eq__ for free.
#   - They document the wire contracts: reading CompletionRequest tells you
#     exactly what the completion backend receives.
#   - Validation lives next to the data (see __post_init__), so a gateway
#     can never send a request that violates its own invariants.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from core.errors import InvalidArgument


# -----------------------------------------------------------------------------
# CompletionRequest — one single-message call to the completion backend
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class CompletionRequest:
    """A single-turn prompt for the hosted text-completion endpoint.

    Invariants (checked on construction, raising InvalidArgument):
      - prompt is non-empty
      - temperature is within [0.0, 1.0]
      - max_tokens is positive
    """

    model: str
    prompt: str
    temperature: float = 0.2           # Analytical default; reports use 0.1
    max_tokens: int = 2000

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise InvalidArgument("prompt must not be empty")
        if not 0.0 <= self.temperature <= 1.0:
            raise InvalidArgument(
                f"temperature must be between 0 and 1, got {self.temperature}"
            )
        if self.max_tokens <= 0:
            raise InvalidArgument(
                f"max_tokens must be positive, got {self.max_tokens}"
            )

    def to_payload(self) -> dict[str, Any]:
        """The JSON body sent to the completion backend."""
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": self.prompt}],
        }


@dataclass(frozen=True)
class CompletionResult:
    """The first text segment of a completion.  "" is a valid result."""

    text: str


# -----------------------------------------------------------------------------
# LogQuerySpec — what to run in Log Analytics and how to print it
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class LogQuerySpec:
    workspace_id: str
    query: str
    timespan: str = "P1D"              # ISO-8601 lookback ending now
    as_csv: bool = True                # False → " | " delimited


# -----------------------------------------------------------------------------
# TabularResult — the first table of a log query, flattened to strings
# -----------------------------------------------------------------------------
@dataclass
class TabularResult:
    """Column names plus rows of stringified cells (None becomes "")."""

    columns: list[str]
    rows: list[list[str]] = field(default_factory=list)

    @classmethod
    def from_rows(
        cls, columns: Iterable[Any], rows: Iterable[Iterable[Any]]
    ) -> "TabularResult":
        return cls(
            columns=[_column_name(c) for c in columns],
            rows=[[_cell_text(v) for v in row] for row in rows],
        )


def _column_name(column: Any) -> str:
    # Older SDK builds hand back column objects, newer ones plain strings.
    name = getattr(column, "name", column)
    return "" if name is None else str(name)


def _cell_text(value: Optional[Any]) -> str:
    return "" if value is None else str(value)


# -----------------------------------------------------------------------------
# EncryptionStatus — the one bit check_storage_encryption reports
# -----------------------------------------------------------------------------
ENCRYPTION_ON = "Encryption BLOB: Turned On"
ENCRYPTION_OFF = "Encryption BLOB: Turned Off"


@dataclass(frozen=True)
class EncryptionStatus:
    enabled: bool = False              # Absent anywhere in the chain → off

    def describe(self) -> str:
        # Consumers parse this sentence; it must stay byte-for-byte stable.
        return ENCRYPTION_ON if self.enabled else ENCRYPTION_OFF
