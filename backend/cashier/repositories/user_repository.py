from __future__ import annotations

from sqlalchemy import func

from ..models import User, SessionToken, Transaction


class UserRepository:
    def __init__(self, session):
        self.session = session

    def list(self) -> list[User]:
        return self.session.query(User).order_by(User.id.asc()).all()

    def get(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_by_email(self, email: str, *, exclude_id: int | None = None) -> User | None:
        query = self.session.query(User).filter(func.lower(User.email) == email.strip().lower())
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first()

    def count_transactions(self, user_id: int) -> int:
        return self.session.query(func.count(Transaction.id)).filter(Transaction.user_id == user_id).scalar() or 0

    def add(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    def delete(self, user: User) -> None:
        self.session.delete(user)
        self.session.flush()


class SessionTokenRepository:
    def __init__(self, session):
        self.session = session

    def find_active_by_hash(self, token_hash: str) -> SessionToken | None:
        return (
            self.session.query(SessionToken)
            .filter_by(token_hash=token_hash, is_revoked=False)
            .first()
        )

    def active_for_user(self, user_id: int) -> list[SessionToken]:
        return self.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()

    def add(self, token: SessionToken) -> SessionToken:
        self.session.add(token)
        self.session.flush()
        return token
