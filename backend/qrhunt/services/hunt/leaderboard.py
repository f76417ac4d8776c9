from dataclasses import dataclass
from typing import Dict, Iterable, List

from .records import TeamState


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    team_id: str
    name: str
    progress: int
    total_elapsed_ms: int
    level_durations: Dict[int, int]
    completed: bool

    def to_dict(self) -> dict:
        return {
            'rank': self.rank,
            'team_id': self.team_id,
            'name': self.name,
            'progress': self.progress,
            'completed': self.completed,
            'total_elapsed_ms': self.total_elapsed_ms,
            'level_durations': {str(level): ms for level, ms in sorted(self.level_durations.items())},
        }


def rank_teams(teams: Iterable[TeamState], level_count: int) -> List[LeaderboardEntry]:
    """Rank teams: furthest progress first, then least total time.

    sorted() is stable, so teams with equal progress and time keep the order
    they were listed in.
    """
    ordered = sorted(teams, key=lambda t: (-t.progress, t.total_elapsed_ms))
    return [
        LeaderboardEntry(
            rank=position,
            team_id=team.id,
            name=team.name,
            progress=team.progress,
            total_elapsed_ms=team.total_elapsed_ms,
            level_durations=dict(team.level_durations),
            completed=team.progress > level_count,
        )
        for position, team in enumerate(ordered, start=1)
    ]
