from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional


@dataclass(frozen=True)
class TeamState:
    """Detached copy of a team row; the engine works on these, never on ORM objects."""

    id: str
    name: str
    progress: int = 1
    total_elapsed_ms: int = 0
    current_level_started_at: Optional[int] = None
    level_durations: Dict[int, int] = field(default_factory=dict)
    locked_until: Optional[int] = None
    version: int = 0

    def normalized(self, now: int) -> TeamState:
        """Drop a lock that has already run out."""
        if self.locked_until is not None and self.locked_until <= now:
            return replace(self, locked_until=None)
        return self

    def is_locked(self, now: int) -> bool:
        return self.locked_until is not None and self.locked_until > now

    def to_dict(self, level_count: int) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'progress': self.progress,
            'completed': self.progress > level_count,
            'total_elapsed_ms': self.total_elapsed_ms,
            'current_level_started_at': self.current_level_started_at,
            'level_durations': {str(level): ms for level, ms in sorted(self.level_durations.items())},
            'locked_until': self.locked_until,
        }


@dataclass(frozen=True)
class QuestionRecord:
    level: int
    text: str
    correct_answer: str
    options: List[str] = field(default_factory=list)
    question_id: str = ''

    def to_public_dict(self) -> dict:
        return {
            'level': self.level,
            'question_id': self.question_id,
            'question': self.text,
            'options': list(self.options),
        }


@dataclass(frozen=True)
class AttemptRecord:
    team_id: str
    level: int
    submitted_answer: str
    is_correct: bool
    elapsed_ms: Optional[int]
    submitted_at: int
