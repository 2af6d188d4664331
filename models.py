"""
Data models for the MTG Ruling Scanner
Rulings, lookup results, per-scan state and the lookup error types
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class CardLookupError(Exception):
    """Base class for failures talking to the card database"""
    kind = "lookup"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(CardLookupError):
    """Transport failure or an unexpected HTTP status"""
    kind = "network"


class NotFoundError(CardLookupError):
    """The card database has no match for the query"""
    kind = "not_found"


class ParseError(CardLookupError):
    """Response body was not JSON or did not have the expected shape"""
    kind = "parse"


class ScanInProgressError(RuntimeError):
    """Raised when a scan is requested while another is still running"""


@dataclass(frozen=True)
class Ruling:
    """A single official ruling, rendered verbatim"""
    published_at: str
    comment: str

    @classmethod
    def from_api(cls, payload: Any) -> "Ruling":
        if not isinstance(payload, dict):
            raise ParseError(f"Ruling entry is not an object: {payload!r}")
        return cls(
            published_at=str(payload.get('published_at') or ''),
            comment=str(payload.get('comment') or ''),
        )

    def to_dict(self) -> Dict[str, str]:
        return {'published_at': self.published_at, 'comment': self.comment}


class LookupKind(str, Enum):
    RULINGS = "rulings"
    SUGGESTIONS = "suggestions"
    NOTHING = "nothing"


@dataclass(frozen=True)
class LookupResult:
    """
    Outcome of a ruling lookup.
    At most one of rulings / suggestions is populated, selected by kind.
    """
    kind: LookupKind
    query: str = ""
    card_name: Optional[str] = None
    rulings: Tuple[Ruling, ...] = ()
    suggestions: Tuple[str, ...] = ()
    primary_failure: Optional[str] = None
    fallback_failure: Optional[str] = None

    def __post_init__(self):
        if self.rulings and self.suggestions:
            raise ValueError("A lookup result cannot hold both rulings and suggestions")
        if self.kind != LookupKind.RULINGS and self.rulings:
            raise ValueError(f"{self.kind.value} result cannot carry rulings")
        if self.kind != LookupKind.SUGGESTIONS and self.suggestions:
            raise ValueError(f"{self.kind.value} result cannot carry suggestions")
        if self.kind == LookupKind.SUGGESTIONS and not self.suggestions:
            raise ValueError("suggestions result needs at least one suggestion")

    @classmethod
    def with_rulings(cls, query: str, rulings: Iterable[Ruling],
                     card_name: Optional[str] = None) -> "LookupResult":
        return cls(kind=LookupKind.RULINGS, query=query, card_name=card_name,
                   rulings=tuple(rulings))

    @classmethod
    def with_suggestions(cls, query: str, suggestions: Iterable[str],
                         primary_failure: Optional[str] = None) -> "LookupResult":
        return cls(kind=LookupKind.SUGGESTIONS, query=query,
                   suggestions=tuple(suggestions), primary_failure=primary_failure)

    @classmethod
    def nothing(cls, query: str = "", primary_failure: Optional[str] = None,
                fallback_failure: Optional[str] = None) -> "LookupResult":
        return cls(kind=LookupKind.NOTHING, query=query,
                   primary_failure=primary_failure, fallback_failure=fallback_failure)

    @property
    def has_rulings(self) -> bool:
        return bool(self.rulings)

    @property
    def has_suggestions(self) -> bool:
        return bool(self.suggestions)

    @property
    def is_empty(self) -> bool:
        return not self.rulings and not self.suggestions

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'query': self.query,
            'card_name': self.card_name,
            'rulings': [r.to_dict() for r in self.rulings],
            'suggestions': list(self.suggestions),
            'primary_failure': self.primary_failure,
            'fallback_failure': self.fallback_failure,
        }


@dataclass
class ScanState:
    """State carried through one capture -> extract -> lookup run"""
    image_path: Optional[str] = None
    raw_text: str = ""
    card_name: str = ""
    result: LookupResult = field(default_factory=LookupResult.nothing)
    loading: bool = False
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def duration(self) -> float:
        if not self.started_at or not self.finished_at:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'image_path': self.image_path,
            'raw_text': self.raw_text,
            'card_name': self.card_name,
            'result': self.result.to_dict(),
            'error': self.error,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'duration': self.duration,
        }


def rulings_from_api(entries: Any) -> List[Ruling]:
    """Convert a Scryfall rulings `data` list into Ruling objects"""
    if not isinstance(entries, list):
        raise ParseError(f"Rulings data is not a list: {type(entries).__name__}")
    return [Ruling.from_api(entry) for entry in entries]
