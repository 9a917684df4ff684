# Overview: Service-layer operations for auth and user accounts; bcrypt passwords.

"""
Authentication Service

Every transaction is attributable to the user who rang it up. Users log in
with email + password and receive an opaque session token (see
session_service.py).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters required
- Email is the login identifier and is unique (case-insensitive)
- Deactivating a user or changing their password revokes their sessions
"""

import bcrypt
from flask import current_app

from ..errors import AuthError, ConflictError, NotFoundError, ValidationError
from ..models import User, ROLES, ROLE_CASHIER
from ..repositories import UserRepository
from cashier.time_utils import utcnow
from .concurrency import run_in_transaction
from .session_service import SessionService

MIN_PASSWORD_LENGTH = 6
BCRYPT_ROUNDS = 12


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for length before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe. A malformed stored hash never matches."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _check_role(role: str) -> None:
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")


class AuthService:
    def __init__(self, session, users: UserRepository, sessions: SessionService):
        self.session = session
        self.users = users
        self.sessions = sessions

    # ------------------------------------------------------------------
    # Login / registration
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str, role: str | None = None) -> User:
        """
        Create a new user account.

        Raises:
            ValidationError: short password or unknown role
            ConflictError: email already registered
        """
        role = role or ROLE_CASHIER
        _check_role(role)
        password_hash = hash_password(password)
        email = email.strip().lower()

        def _work() -> User:
            if self.users.find_by_email(email):
                raise ConflictError("email already registered")
            return self.users.add(
                User(name=name.strip(), email=email, password_hash=password_hash, role=role, is_active=True)
            )

        user = run_in_transaction(self.session, _work)
        current_app.logger.info("Registered user %s (%s) as %s", user.id, user.email, user.role)
        return user

    def login(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> dict:
        """
        Verify credentials and open a session.

        Returns:
            {"token": <plaintext token>, "user": <user dict>}

        Raises:
            AuthError: unknown email, wrong password or inactive account
        """
        user = self.users.find_by_email(email or "")
        if user is None or not verify_password(password or "", user.password_hash):
            raise AuthError("invalid email or password")
        if not user.is_active:
            raise AuthError("user account is inactive")

        user.last_login_at = utcnow()
        _record, token = self.sessions.create(user, user_agent=user_agent, ip_address=ip_address)
        return {"token": token, "user": user.to_dict()}

    def logout(self, token: str) -> bool:
        return self.sessions.revoke(token)

    # ------------------------------------------------------------------
    # User administration
    # ------------------------------------------------------------------

    def list_users(self) -> list[dict]:
        return [u.to_dict() for u in self.users.list()]

    def _require(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    def get_user(self, user_id: int) -> User:
        return self._require(user_id)

    def update_user(
        self,
        user_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
    ) -> User:
        """
        Raises:
            NotFoundError: no such user
            ConflictError: another account already uses the email
        """
        if role is not None:
            _check_role(role)

        def _work() -> User:
            user = self._require(user_id)
            if email is not None:
                normalized = email.strip().lower()
                if self.users.find_by_email(normalized, exclude_id=user.id):
                    raise ConflictError("email already registered")
                user.email = normalized
            if name is not None:
                user.name = name.strip()
            if role is not None:
                user.role = role
            if is_active is not None:
                if user.is_active and not is_active:
                    self.sessions.revoke_all_for_user(user.id, "User account deactivated", commit=False)
                user.is_active = is_active
            return user

        return run_in_transaction(self.session, _work)

    def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        """
        Raises:
            AuthError: old password does not match
            ValidationError: new password too short
        """
        new_hash = hash_password(new_password)

        def _work() -> None:
            user = self._require(user_id)
            if not verify_password(old_password or "", user.password_hash):
                raise AuthError("old password is incorrect")
            user.password_hash = new_hash
            self.sessions.revoke_all_for_user(user.id, "Password changed", commit=False)

        run_in_transaction(self.session, _work)
        current_app.logger.info("Password changed for user %s", user_id)

    def delete_user(self, user_id: int) -> None:
        """
        Users who have rung up transactions are kept for attribution; deactivate
        them instead.
        """
        def _work() -> None:
            user = self._require(user_id)
            if self.users.count_transactions(user.id):
                raise ConflictError("user has transactions and cannot be deleted; deactivate instead")
            self.users.delete(user)

        run_in_transaction(self.session, _work)
