"""
Tests for travelhub.security.auth - credential resolution
"""
import pytest
from datetime import timedelta

from travelhub.errors import Unauthenticated
from travelhub.models.ontology import Role
from travelhub.security.auth import SessionAuthority, create_access_token, decode_token


class TestTokens:

    def test_round_trip_claims(self):
        token = create_access_token(7, Role.SUB_ADMIN)
        payload = decode_token(token)
        assert payload["sub"] == "7"
        assert payload["role"] == "SUB_ADMIN"

    def test_expired_token(self):
        token = create_access_token(7, Role.USER, expires_delta=timedelta(seconds=-1))
        with pytest.raises(Unauthenticated):
            decode_token(token)

    def test_garbage_token(self):
        with pytest.raises(Unauthenticated):
            decode_token("not-a-token")


class TestSessionAuthority:

    def test_no_credential_is_anonymous(self, db_session):
        ctx = SessionAuthority(db_session).resolve(None)
        assert ctx.is_anonymous

    def test_valid_session(self, db_session, user):
        ctx = SessionAuthority(db_session).resolve(create_access_token(user.id, user.role))
        assert ctx.user_id == user.id
        assert ctx.role == Role.USER

    def test_unknown_user(self, db_session):
        with pytest.raises(Unauthenticated):
            SessionAuthority(db_session).resolve(create_access_token(999, Role.USER))

    def test_stale_role_rejected(self, db_session, user):
        """Promoting a user invalidates sessions issued under the old role"""
        token = create_access_token(user.id, Role.USER)
        user.role = Role.SUB_ADMIN
        db_session.commit()

        with pytest.raises(Unauthenticated):
            SessionAuthority(db_session).resolve(token)

        ctx = SessionAuthority(db_session).resolve(create_access_token(user.id, Role.SUB_ADMIN))
        assert ctx.role == Role.SUB_ADMIN

    def test_unknown_role_claim(self, db_session, user):
        with pytest.raises(Unauthenticated):
            SessionAuthority(db_session).resolve(create_access_token(user.id, "OWNER"))
