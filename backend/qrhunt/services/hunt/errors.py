"""Typed failures raised by the progression engine.

Every error carries a stable ``kind`` for clients to switch on, the HTTP
status the API answers with, and a ``detail`` dict with whatever the client
needs to render a precise message (remaining lock time, allowed level).
"""

from typing import Any, Dict, Optional


class GameError(Exception):
    kind = 'GameError'
    status_code = 400
    message = 'Request rejected'

    def __init__(self, message: Optional[str] = None, **detail: Any) -> None:
        super().__init__(message or self.message)
        self.detail: Dict[str, Any] = detail

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'message': str(self), 'detail': self.detail}


class BadRequest(GameError):
    kind = 'BadRequest'
    message = 'Malformed request'


class InvalidToken(GameError):
    kind = 'InvalidToken'
    message = 'Invalid token'


class TeamNotFound(GameError):
    kind = 'TeamNotFound'
    status_code = 404
    message = 'Team not found'


class Locked(GameError):
    kind = 'Locked'
    status_code = 423
    message = 'Team is locked after a wrong answer'

    def __init__(self, remaining_ms: int, locked_until: int) -> None:
        super().__init__(remaining_ms=remaining_ms, locked_until=locked_until)


class GameCompleted(GameError):
    kind = 'GameCompleted'
    status_code = 409
    message = 'Team has already completed every level'


class LevelMismatch(GameError):
    kind = 'LevelMismatch'
    status_code = 403
    message = 'This QR code is not the level the team is on'

    def __init__(self, allowed: int) -> None:
        super().__init__(allowed=allowed)


class Conflict(GameError):
    kind = 'Conflict'
    status_code = 409
    message = 'Team was updated concurrently, please retry'


class QuestionMissing(GameError):
    """No question stored for an in-range level. A content/deployment defect."""

    kind = 'QuestionMissing'
    status_code = 500
    message = 'Question missing for level'

    def __init__(self, level: int) -> None:
        super().__init__(level=level)


class SaveConflict(Exception):
    """Raised by a repository when the stored team changed since it was read."""

    def __init__(self, team_id: str) -> None:
        super().__init__(f"team {team_id} was modified concurrently")
        self.team_id = team_id
