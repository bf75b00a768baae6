# app/auth/sessions.py
import hashlib
import hmac
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.auth.models import RefreshSlot


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class SessionStore:
    """
    Single-slot session store keyed by user id.

    ``put`` overwrites whatever was there, so only the most recently issued
    refresh token matches; ``clear`` drops the slot. Reads and writes are
    separate statements: two refreshes racing on the same old token can both
    pass ``matches`` and the later ``put`` wins.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> str | None:
        slot = self.db.get(RefreshSlot, user_id)
        return slot.token_digest if slot else None

    def matches(self, user_id: str, token: str) -> bool:
        stored = self.get(user_id)
        if stored is None:
            return False
        return hmac.compare_digest(stored, _digest(token))

    def put(self, user_id: str, token: str) -> None:
        slot = self.db.get(RefreshSlot, user_id)
        now = datetime.now(timezone.utc)
        if slot is None:
            self.db.add(RefreshSlot(user_id=user_id, token_digest=_digest(token), rotated_at=now))
        else:
            slot.token_digest = _digest(token)
            slot.rotated_at = now
        self.db.commit()

    def clear(self, user_id: str) -> None:
        slot = self.db.get(RefreshSlot, user_id)
        if slot is not None:
            self.db.delete(slot)
            self.db.commit()
