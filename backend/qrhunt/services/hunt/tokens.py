import base64
import binascii
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class LevelToken:
    level: int
    question_id: str
    issued_at: int


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenCodec:
    """Issues and verifies the signed level tokens printed on the QR codes.

    A token is ``<payload>.<signature>`` where ``payload`` is base64 of the
    JSON ``{"level", "qid", "issuedAt"}`` and ``signature`` is the hex
    HMAC-SHA256 of the payload text under the server secret.

    ``verify`` never raises: forged or mangled tokens are an expected input
    and come back as ``None``.
    """

    def __init__(self, secret: str, max_age_ms: int = 0, clock: Optional[Callable[[], int]] = None):
        if not secret:
            raise ValueError('token secret must not be empty')
        self._key = secret.encode('utf-8')
        self.max_age_ms = max_age_ms
        self.clock = clock or _now_ms

    def _sign(self, payload: bytes) -> str:
        return hmac.new(self._key, payload, hashlib.sha256).hexdigest()

    def issue(self, level: int, question_id: str) -> str:
        body = json.dumps(
            {'level': int(level), 'qid': str(question_id), 'issuedAt': self.clock()},
            separators=(',', ':'),
        )
        payload = base64.b64encode(body.encode('utf-8'))
        return f"{payload.decode('ascii')}.{self._sign(payload)}"

    def verify(self, token) -> Optional[LevelToken]:
        if not isinstance(token, str) or not token:
            return None
        parts = token.split('.')
        if len(parts) != 2:
            return None
        payload, signature = (p.encode('utf-8') for p in parts)
        expected = self._sign(payload).encode('ascii')
        if not hmac.compare_digest(expected, signature):
            return None

        try:
            data = json.loads(base64.b64decode(payload, validate=True).decode('utf-8'))
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        level, qid, issued_at = data.get('level'), data.get('qid'), data.get('issuedAt')
        # bool is an int subclass; a payload of {"level": true} is not a level
        if not isinstance(level, int) or isinstance(level, bool):
            return None
        if not isinstance(qid, str):
            return None
        if not isinstance(issued_at, (int, float)) or isinstance(issued_at, bool):
            return None

        if self.max_age_ms and abs(self.clock() - issued_at) > self.max_age_ms:
            return None
        return LevelToken(level=level, question_id=qid, issued_at=int(issued_at))
