# Overview: Service-layer operations for session tokens; issue, validate and revoke.

"""
Session Token Management Service

Opaque bearer tokens for the JSON API.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_ABSOLUTE_TIMEOUT_HOURS, default 24h)
- Idle timeout (SESSION_IDLE_TIMEOUT_HOURS, default 2h)
- Revocable on logout, and automatically when the account is deactivated
"""

import hashlib
import secrets
from datetime import timedelta

from ..models import SessionToken, User
from ..repositories import SessionTokenRepository
from cashier.time_utils import utcnow


def generate_token() -> str:
    """64-character hex string; the plaintext token sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy (unlike passwords), so a plain digest is
    enough here; bcrypt is reserved for passwords.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionService:
    def __init__(
        self,
        session,
        tokens: SessionTokenRepository,
        *,
        absolute_timeout: timedelta = timedelta(hours=24),
        idle_timeout: timedelta = timedelta(hours=2),
    ):
        self.session = session
        self.tokens = tokens
        self.absolute_timeout = absolute_timeout
        self.idle_timeout = idle_timeout

    def create(
        self,
        user: User,
        user_agent: str | None = None,
        ip_address: str | None = None,
        *,
        commit: bool = True,
    ) -> tuple[SessionToken, str]:
        """
        Create a new session for user.

        Returns (session_record, plaintext_token). Only the hash is persisted.
        """
        plaintext_token = generate_token()
        now = utcnow()

        record = SessionToken(
            user_id=user.id,
            token_hash=hash_token(plaintext_token),
            created_at=now,
            last_used_at=now,
            expires_at=now + self.absolute_timeout,
            user_agent=(user_agent or "")[:512] or None,
            ip_address=ip_address,
            is_revoked=False,
        )
        self.tokens.add(record)
        if commit:
            self.session.commit()
        return record, plaintext_token

    def _revoke_record(self, record: SessionToken, reason: str) -> None:
        record.is_revoked = True
        record.revoked_at = utcnow()
        record.revoked_reason = reason

    def validate(self, token: str) -> User | None:
        """
        Return the user behind a token, or None.

        None when the token is unknown, revoked, past its absolute expiry,
        idle for too long, or belongs to a deactivated account. Idle and
        deactivated sessions are revoked on the way out. A valid call
        refreshes last_used_at.
        """
        record = self.tokens.find_active_by_hash(hash_token(token))
        if record is None:
            return None

        now = utcnow()
        if record.expires_at < now:
            return None

        if now - record.last_used_at > self.idle_timeout:
            self._revoke_record(record, "Idle timeout")
            self.session.commit()
            return None

        user = record.user
        if user is None or not user.is_active:
            self._revoke_record(record, "User account deactivated")
            self.session.commit()
            return None

        record.last_used_at = now
        self.session.commit()
        return user

    def revoke(self, token: str, reason: str = "User logout") -> bool:
        """Returns True if a live session was revoked, False if none matched."""
        record = self.tokens.find_active_by_hash(hash_token(token))
        if record is None:
            return False
        self._revoke_record(record, reason)
        self.session.commit()
        return True

    def revoke_all_for_user(self, user_id: int, reason: str, *, commit: bool = True) -> int:
        """
        Revoke every live session of a user (password change, deactivation).

        Returns count of sessions revoked.
        """
        records = self.tokens.active_for_user(user_id)
        for record in records:
            self._revoke_record(record, reason)
        if commit:
            self.session.commit()
        return len(records)
