"""Per-team level progression: scan -> answer -> advance or lock.

A team is Idle on level N until it scans the level-N token, Answering until
it submits the right answer (then Idle on N+1), and Locked for the cooldown
after a wrong answer. Progress 11 means every level is cleared.

Locks are never expired by a timer; each scan/answer compares
``locked_until`` against the clock. Concurrent requests for one team are
serialized by the repository's compare-and-set on the team row: the loser
re-runs its whole read-modify-write cycle, gating included.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from .broadcaster import GLOBAL, LEADERBOARD_UPDATE, LEVEL_STARTED, TEAM_UPDATE, team_scope
from .errors import (
    Conflict,
    GameCompleted,
    InvalidToken,
    LevelMismatch,
    Locked,
    QuestionMissing,
    SaveConflict,
    TeamNotFound,
)
from .leaderboard import LeaderboardEntry, rank_teams
from .records import AttemptRecord, QuestionRecord, TeamState
from .tokens import LevelToken

LEVEL_COUNT = 10


def _now_ms() -> int:
    return int(time.time() * 1000)


def answers_match(submitted, expected) -> bool:
    return str(submitted).strip().casefold() == str(expected).strip().casefold()


@dataclass(frozen=True)
class ScanResult:
    """Question opened by a scan.

    ``started_at`` is when the team first scanned this level. Rescans,
    including those after a lockout, return the same value.
    """

    level: int
    question: QuestionRecord
    started_at: int

    def to_dict(self) -> dict:
        payload = self.question.to_public_dict()
        payload['started_at'] = self.started_at
        return payload


@dataclass(frozen=True)
class AnswerResult:
    correct: bool
    level: int
    next_level: Optional[int] = None
    completed: bool = False
    elapsed_ms: Optional[int] = None
    locked_until: Optional[int] = None

    def to_dict(self) -> dict:
        if self.correct:
            return {
                'correct': True,
                'level': self.level,
                'next_level': self.next_level,
                'completed': self.completed,
                'elapsed_ms': self.elapsed_ms,
            }
        return {'correct': False, 'level': self.level, 'locked_until': self.locked_until}


class ProgressionEngine:
    def __init__(
        self,
        repository,
        codec,
        broadcaster,
        cooldown_ms: int = 30000,
        retry_limit: int = 3,
        clock: Optional[Callable[[], int]] = None,
        logger=None,
        level_count: int = LEVEL_COUNT,
    ):
        self.repository = repository
        self.codec = codec
        self.broadcaster = broadcaster
        self.cooldown_ms = cooldown_ms
        self.retry_limit = max(1, retry_limit)
        self.clock = clock or _now_ms
        self.logger = logger or logging.getLogger(__name__)
        self.level_count = level_count

    # ---- public operations ----

    def scan(self, token: str, team_id: str) -> ScanResult:
        """Open the question for the level encoded in ``token``."""
        return self._with_retries('scan', team_id, lambda: self._scan_once(token, team_id))

    def answer(self, token: str, team_id: str, submitted_answer) -> AnswerResult:
        """Score an answer for the team's current level; advance or lock."""
        return self._with_retries('answer', team_id, lambda: self._answer_once(token, team_id, submitted_answer))

    def team_snapshot(self, team_id: str) -> dict:
        team = self.repository.get_team(team_id)
        if team is None:
            raise TeamNotFound(team_id=team_id)
        return team.normalized(self.clock()).to_dict(self.level_count)

    def leaderboard(self) -> List[LeaderboardEntry]:
        return rank_teams(self.repository.list_teams(), self.level_count)

    # ---- internals ----

    def _with_retries(self, op: str, team_id: str, step):
        for attempt in range(1, self.retry_limit + 1):
            try:
                return step()
            except SaveConflict:
                self.logger.info(f"[{op}-conflict] team={team_id} attempt={attempt}/{self.retry_limit}")
        self.logger.warning(f"[{op}-giveup] team={team_id} retries exhausted")
        raise Conflict(team_id=team_id)

    def _gate(self, token: str, team_id: str, now: int) -> Tuple[LevelToken, TeamState]:
        payload = self.codec.verify(token)
        if payload is None:
            self.logger.info(f"[reject] team={team_id} kind=InvalidToken")
            raise InvalidToken()

        team = self.repository.get_team(team_id)
        if team is None:
            raise TeamNotFound(team_id=team_id)
        team = team.normalized(now)

        if team.is_locked(now):
            raise Locked(remaining_ms=team.locked_until - now, locked_until=team.locked_until)
        if team.progress > self.level_count:
            raise GameCompleted(progress=team.progress)
        if payload.level != team.progress:
            self.logger.info(f"[reject] team={team_id} kind=LevelMismatch token_level={payload.level} progress={team.progress}")
            raise LevelMismatch(allowed=team.progress)
        return payload, team

    def _question_for(self, level: int) -> QuestionRecord:
        question = self.repository.get_question_by_level(level)
        if question is None:
            self.logger.error(f"[question-missing] level={level} no question configured")
            raise QuestionMissing(level)
        return question

    def _scan_once(self, token: str, team_id: str) -> ScanResult:
        now = self.clock()
        payload, team = self._gate(token, team_id, now)
        question = self._question_for(payload.level)

        # Re-scans keep the original start so the level timer runs through lockouts
        started_at = team.current_level_started_at if team.current_level_started_at is not None else now
        self.repository.save_team(replace(team, current_level_started_at=started_at))
        self.logger.info(f"[scan] team={team_id} level={payload.level} started_at={started_at}")

        self.broadcaster.broadcast(
            team_scope(team_id),
            LEVEL_STARTED,
            {'team_id': team_id, 'level': payload.level, 'started_at': started_at},
        )
        return ScanResult(level=payload.level, question=question, started_at=started_at)

    def _answer_once(self, token: str, team_id: str, submitted_answer) -> AnswerResult:
        now = self.clock()
        payload, team = self._gate(token, team_id, now)
        level = payload.level
        question = self._question_for(level)

        correct = answers_match(submitted_answer, question.correct_answer)
        started_at = team.current_level_started_at
        elapsed_ms = now - started_at if started_at is not None else None

        if correct:
            durations = dict(team.level_durations)
            total = team.total_elapsed_ms
            if elapsed_ms is not None:
                total += elapsed_ms
                durations[level] = elapsed_ms
            updated = replace(
                team,
                progress=min(team.progress + 1, self.level_count + 1),
                total_elapsed_ms=total,
                level_durations=durations,
                current_level_started_at=None,
                locked_until=None,
            )
        else:
            updated = replace(team, locked_until=now + self.cooldown_ms)

        attempt = AttemptRecord(
            team_id=team_id,
            level=level,
            submitted_answer=str(submitted_answer),
            is_correct=correct,
            elapsed_ms=elapsed_ms,
            submitted_at=now,
        )
        # Team update and audit row commit together or not at all
        saved = self.repository.save_team(updated, attempt)

        if not correct:
            self.logger.info(f"[answer-wrong] team={team_id} level={level} locked_until={saved.locked_until}")
            return AnswerResult(correct=False, level=level, locked_until=saved.locked_until)

        completed = saved.progress > self.level_count
        self.logger.info(
            f"[answer-correct] team={team_id} level={level} elapsed_ms={elapsed_ms} progress={saved.progress}"
        )
        self.broadcaster.broadcast(
            GLOBAL,
            LEADERBOARD_UPDATE,
            [entry.to_dict() for entry in self.leaderboard()],
        )
        self.broadcaster.broadcast(team_scope(team_id), TEAM_UPDATE, saved.to_dict(self.level_count))
        return AnswerResult(
            correct=True,
            level=level,
            next_level=saved.progress,
            completed=completed,
            elapsed_ms=elapsed_ms,
        )
