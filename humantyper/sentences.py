from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

logger = logging.getLogger(__name__)


@dataclass
class SentenceEntry:
    id: int
    text: str
    scenario_tag: Optional[str] = None


DEFAULT_SENTENCES: Sequence[SentenceEntry] = (
    SentenceEntry(1, "Hey! How is your day going?", "opener"),
    SentenceEntry(2, "Sounds good, talk to you soon.", "closer"),
    SentenceEntry(3, "Haha that is great, tell me more", "followup"),
)


class SentenceRepository:
    """User-editable sentence list; `next()` hands them out round-robin."""

    def __init__(self, entries: Sequence[SentenceEntry] = DEFAULT_SENTENCES):
        self.entries: List[SentenceEntry] = list(entries)
        self._cursor = 0

    def next(self) -> str:
        """Return the next non-blank sentence, or "" when there is none."""
        for _ in range(len(self.entries)):
            entry = self.entries[self._cursor % len(self.entries)]
            self._cursor = (self._cursor + 1) % len(self.entries)
            if entry.text.strip():
                return entry.text
        return ""

    def by_tag(self, tag: str) -> List[SentenceEntry]:
        return [e for e in self.entries if e.scenario_tag == tag]

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SentenceRepository":
        """Load a JSON list of `{id, text, scenario_tag}`; defaults if the file is missing."""
        p = Path(path)
        if not p.exists():
            logger.info("No sentence file at %s; using defaults", p)
            return cls()
        raw = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"{p}: expected a JSON list of sentences")
        entries = [
            SentenceEntry(
                id=int(item["id"]),
                text=str(item["text"]),
                scenario_tag=item.get("scenario_tag"),
            )
            for item in raw
        ]
        return cls(entries)

    def save(self, path: Union[str, Path]) -> None:
        data = [asdict(e) for e in self.entries]
        Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")
