from dataclasses import replace
from typing import List, Optional

from sqlalchemy import update

from qrhunt.models import Attempt, Question, Team, decode_level_durations, encode_level_durations
from .errors import SaveConflict
from .records import AttemptRecord, QuestionRecord, TeamState


class TeamRepository:
    """Storage the progression engine reads and writes through."""

    def get_team(self, team_id: str) -> Optional[TeamState]:
        raise NotImplementedError

    def save_team(self, team: TeamState, attempt: Optional[AttemptRecord] = None) -> TeamState:
        """Persist ``team`` if the stored row still has ``team.version``.

        ``attempt``, when given, is written in the same transaction, so the
        audit row exists exactly when the team update does. Returns the saved
        state with its new version, raises SaveConflict otherwise.
        """
        raise NotImplementedError

    def get_question_by_level(self, level: int) -> Optional[QuestionRecord]:
        raise NotImplementedError

    def append_attempt(self, attempt: AttemptRecord) -> None:
        raise NotImplementedError

    def list_teams(self) -> List[TeamState]:
        raise NotImplementedError


def _team_state(row: Team) -> TeamState:
    return TeamState(
        id=row.id,
        name=row.name,
        progress=row.progress,
        total_elapsed_ms=row.total_elapsed_ms or 0,
        current_level_started_at=row.current_level_started_at,
        level_durations=decode_level_durations(row.level_durations),
        locked_until=row.locked_until,
        version=row.version or 0,
    )


class SqlAlchemyTeamRepository(TeamRepository):
    """Repository over the Flask-SQLAlchemy models.

    ``session`` is resolved on every call so the same repository can be
    shared across requests (Flask-SQLAlchemy scopes the session per app
    context).
    """

    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def get_team(self, team_id):
        row = self.session.get(Team, team_id, populate_existing=True)
        return _team_state(row) if row else None

    def save_team(self, team, attempt=None):
        try:
            result = self.session.execute(
                update(Team)
                .where(Team.id == team.id, Team.version == team.version)
                .values(
                    name=team.name,
                    progress=team.progress,
                    total_elapsed_ms=team.total_elapsed_ms,
                    current_level_started_at=team.current_level_started_at,
                    level_durations=encode_level_durations(team.level_durations),
                    locked_until=team.locked_until,
                    version=team.version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise SaveConflict(team.id)
            if attempt is not None:
                self.session.add(self._attempt_row(attempt))
            self.session.commit()
        except Exception:
            # drops the team update and the staged attempt together
            self.session.rollback()
            raise
        return replace(team, version=team.version + 1)

    def get_question_by_level(self, level):
        row = Question.query.filter_by(level=level).first()
        if not row:
            return None
        return QuestionRecord(
            level=row.level,
            text=row.text,
            correct_answer=row.correct_answer,
            options=row.option_list,
            question_id=row.public_id,
        )

    def _attempt_row(self, attempt):
        return Attempt(
            team_id=attempt.team_id,
            level=attempt.level,
            submitted_answer=attempt.submitted_answer,
            is_correct=attempt.is_correct,
            elapsed_ms=attempt.elapsed_ms,
            submitted_at=attempt.submitted_at,
        )

    def append_attempt(self, attempt):
        self.session.add(self._attempt_row(attempt))
        self.session.commit()

    def list_teams(self):
        rows = Team.query.order_by(Team.id).populate_existing().all()
        return [_team_state(row) for row in rows]
