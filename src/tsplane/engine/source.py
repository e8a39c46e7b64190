"""Source snapshots and the parsed artifacts built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tsplane.core.logging import get_logger

if TYPE_CHECKING:
    from tsplane.engine.parser import ParseResult, SourceParser

log = get_logger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of a file's text at the time it was versioned."""

    text: str

    def __len__(self) -> int:
        return len(self.text)

    def get_text(self, start: int = 0, end: int | None = None) -> str:
        return self.text[start:end]


@dataclass(eq=False)
class SourceArtifact:
    """A file's snapshot plus its parse tree, built at most once."""

    path: str
    version: str
    snapshot: Snapshot
    _parsed: ParseResult | None = field(default=None, repr=False)

    @property
    def is_parsed(self) -> bool:
        return self._parsed is not None

    def parse(self, parser: SourceParser) -> ParseResult:
        if self._parsed is None:
            self._parsed = parser.parse(self.path, self.snapshot.text)
            log.debug("artifact_parsed", path=self.path, version=self.version[:12])
        return self._parsed
