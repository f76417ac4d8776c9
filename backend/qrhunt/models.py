from qrhunt import db
import json


def encode_level_durations(durations) -> str:
    """Serialize a {level: ms} mapping; JSON keys are the level as a decimal string."""
    return json.dumps({str(int(level)): int(ms) for level, ms in sorted((durations or {}).items())})


def decode_level_durations(raw) -> dict:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return {}
    return {int(level): int(ms) for level, ms in data.items()}


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    progress = db.Column(db.Integer, nullable=False, default=1)
    total_elapsed_ms = db.Column(db.BigInteger, nullable=False, default=0)
    current_level_started_at = db.Column(db.BigInteger, nullable=True)
    level_durations = db.Column(db.Text, nullable=True)  # JSON-encoded {level: ms}
    locked_until = db.Column(db.BigInteger, nullable=True)
    # Bumped on every save; compare-and-set guard for concurrent answers
    version = db.Column(db.Integer, nullable=False, default=0)


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    level = db.Column(db.Integer, unique=True, nullable=False, index=True)
    text = db.Column(db.Text, nullable=False)
    options = db.Column(db.Text, nullable=True)  # JSON-encoded list of strings
    correct_answer = db.Column(db.String(256), nullable=False)

    @property
    def public_id(self) -> str:
        return f"Q{self.level}"

    @property
    def option_list(self):
        return json.loads(self.options) if self.options else []


class Attempt(db.Model):
    __tablename__ = 'attempt'
    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.String(64), db.ForeignKey('team.id'), nullable=False, index=True)
    level = db.Column(db.Integer, nullable=False)
    submitted_answer = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, nullable=False)
    elapsed_ms = db.Column(db.BigInteger, nullable=True)
    submitted_at = db.Column(db.BigInteger, nullable=False)
