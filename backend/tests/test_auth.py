from datetime import timedelta

import pytest

from cashier.errors import AuthError, ConflictError, ValidationError
from cashier.models import SessionToken, ROLE_CASHIER
from cashier.services.auth_service import hash_password, verify_password
from cashier.services.session_service import hash_token
from conftest import TEST_PASSWORD


def test_password_hashing_roundtrip():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("wrong!!", hashed)
    assert not verify_password("secret1", "not-a-bcrypt-hash")


def test_short_password_rejected():
    with pytest.raises(ValidationError):
        hash_password("12345")


def test_register_defaults_to_cashier(services):
    user = services.auth.register("Budi", "Budi@Kasir.com", "secret1")
    assert user.role == ROLE_CASHIER
    assert user.email == "budi@kasir.com"


def test_register_duplicate_email(services, cashier_user):
    with pytest.raises(ConflictError) as exc:
        services.auth.register("Other", cashier_user.email.upper(), "secret1")
    assert exc.value.message == "email already registered"


def test_register_unknown_role(services):
    with pytest.raises(ValidationError):
        services.auth.register("Budi", "budi@kasir.com", "secret1", "owner")


def test_login_success_issues_hashed_token(services, db_session, cashier_user):
    result = services.auth.login(cashier_user.email, TEST_PASSWORD, user_agent="pytest")

    assert result["user"]["email"] == cashier_user.email
    record = db_session.query(SessionToken).one()
    assert record.token_hash == hash_token(result["token"])
    assert record.token_hash != result["token"]
    assert services.sessions.validate(result["token"]).id == cashier_user.id


def test_login_failures(services, db_session, cashier_user):
    with pytest.raises(AuthError) as exc:
        services.auth.login(cashier_user.email, "wrong-password")
    assert exc.value.message == "invalid email or password"

    with pytest.raises(AuthError):
        services.auth.login("nobody@kasir.test", TEST_PASSWORD)

    cashier_user.is_active = False
    db_session.commit()
    with pytest.raises(AuthError) as exc:
        services.auth.login(cashier_user.email, TEST_PASSWORD)
    assert exc.value.message == "user account is inactive"


def test_logout_revokes_token(services, cashier_user):
    token = services.auth.login(cashier_user.email, TEST_PASSWORD)["token"]
    assert services.auth.logout(token) is True
    assert services.sessions.validate(token) is None
    assert services.auth.logout(token) is False


def test_idle_session_is_revoked(services, db_session, cashier_user):
    token = services.auth.login(cashier_user.email, TEST_PASSWORD)["token"]
    record = db_session.query(SessionToken).one()
    record.last_used_at = record.last_used_at - timedelta(hours=3)
    db_session.commit()

    assert services.sessions.validate(token) is None
    assert db_session.query(SessionToken).one().revoked_reason == "Idle timeout"


def test_deactivating_user_revokes_sessions(services, cashier_user):
    token = services.auth.login(cashier_user.email, TEST_PASSWORD)["token"]
    services.auth.update_user(cashier_user.id, is_active=False)
    assert services.sessions.validate(token) is None


def test_update_user_duplicate_email(services, admin_user, cashier_user):
    with pytest.raises(ConflictError):
        services.auth.update_user(cashier_user.id, email=admin_user.email)


def test_change_password(services, cashier_user):
    with pytest.raises(AuthError):
        services.auth.change_password(cashier_user.id, "not-my-password", "newsecret")

    services.auth.change_password(cashier_user.id, TEST_PASSWORD, "newsecret")
    assert services.auth.login(cashier_user.email, "newsecret")["token"]


def test_change_password_revokes_sessions(services, cashier_user):
    token = services.auth.login(cashier_user.email, TEST_PASSWORD)["token"]
    services.auth.change_password(cashier_user.id, TEST_PASSWORD, "newsecret")
    assert services.sessions.validate(token) is None


def test_delete_user_with_transactions_is_blocked(services, cashier_user, product):
    services.transactions.checkout(cashier_user.id, [(product.id, 1)], "cash")
    with pytest.raises(ConflictError):
        services.auth.delete_user(cashier_user.id)
