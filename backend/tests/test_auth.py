"""
Authentication and session tests.

Verifies:
- Password strength rules and bcrypt hashing
- Login returns a bearer token plus the role's permission codes
- Logout revokes the token immediately
- Idle, expired and deactivated-user sessions are rejected
"""

from datetime import timedelta

import pytest

from backoffice.models import SessionToken, User
from backoffice.services import auth_service, session_service
from backoffice.services.auth_service import PasswordValidationError
from backoffice.time_utils import utcnow
from backoffice.validation import ConflictError, ValidationError


PASSWORD = "Password123"


@pytest.fixture
def account(db_session):
    return auth_service.create_user("Clerk@Example.com", "Casey Clerk", PASSWORD, role="sales_rep")


class TestPasswords:

    @pytest.mark.parametrize("password", ["Short1", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_hash_round_trip(self):
        hashed = auth_service.hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert auth_service.verify_password(PASSWORD, hashed)
        assert not auth_service.verify_password("Password124", hashed)

    def test_malformed_hash_is_false(self):
        assert auth_service.verify_password(PASSWORD, "not-a-bcrypt-hash") is False


class TestCreateUser:

    def test_email_normalized(self, account):
        assert account.email == "clerk@example.com"
        assert account.role == "sales_rep"

    def test_duplicate_email(self, account):
        with pytest.raises(ConflictError):
            auth_service.create_user("clerk@example.com", "Other", PASSWORD)

    def test_unknown_role(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.create_user("x@example.com", "X", PASSWORD, role="superuser")


class TestLoginFlow:

    def test_login_me_logout(self, client, account):
        res = client.post('/api/auth/login', json={"email": "clerk@example.com", "password": PASSWORD})
        assert res.status_code == 200
        data = res.get_json()['data']
        assert data['user']['email'] == "clerk@example.com"
        assert "password_hash" not in data['user']
        assert "RECORD_CUSTOMER_TRANSACTION" in data['permissions']
        assert "DELETE_PRODUCT" not in data['permissions']

        headers = {'Authorization': f"Bearer {data['token']}"}
        me = client.get('/api/auth/me', headers=headers)
        assert me.status_code == 200
        assert me.get_json()['data']['user']['id'] == account.id

        assert client.post('/api/auth/logout', headers=headers).status_code == 200
        assert client.get('/api/auth/me', headers=headers).status_code == 401

    def test_login_sets_last_login(self, client, db_session, account):
        assert account.last_login_at is None
        client.post('/api/auth/login', json={"email": "clerk@example.com", "password": PASSWORD})
        db_session.refresh(account)
        assert account.last_login_at is not None

    def test_wrong_password(self, client, account):
        res = client.post('/api/auth/login', json={"email": "clerk@example.com", "password": "Wrong12345"})
        assert res.status_code == 401
        assert res.get_json()['error'] == "Invalid credentials"

    def test_missing_fields(self, client, db_session):
        res = client.post('/api/auth/login', json={"email": "clerk@example.com"})
        assert res.status_code == 400

    def test_inactive_user_cannot_login(self, client, db_session, account):
        account.is_active = False
        db_session.commit()
        res = client.post('/api/auth/login', json={"email": "clerk@example.com", "password": PASSWORD})
        assert res.status_code == 401


class TestSessionValidation:

    def test_token_stored_hashed(self, db_session, account):
        session, token = session_service.create_session(account.id)
        assert session.token_hash == session_service.hash_token(token)
        assert session.token_hash != token

    def test_idle_session_revoked(self, db_session, account):
        session, token = session_service.create_session(account.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked
        assert session.revoked_reason == "Idle timeout"

    def test_expired_session_rejected(self, db_session, account):
        session, token = session_service.create_session(account.id)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_deactivated_user_session_revoked(self, db_session, account):
        _, token = session_service.create_session(account.id)
        account.is_active = False
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert SessionToken.query.filter_by(user_id=account.id, is_revoked=True).count() == 1

    def test_revoke_unknown_token(self, db_session):
        assert session_service.revoke_session("0" * 64) is False

    def test_valid_session_returns_user(self, db_session, account):
        _, token = session_service.create_session(account.id)
        user = session_service.validate_session(token)
        assert isinstance(user, User)
        assert user.id == account.id
