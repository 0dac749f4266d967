"""Tests for the User model."""

from __future__ import annotations

import pytest
from shortlink.models.link import Link
from shortlink.models.refresh_token import RefreshToken
from shortlink.models.user import User, normalize_email
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from tests.factories.link import LinkFactory
from tests.factories.user import UserFactory


class TestUser:
    def test_email_normalized_and_unique(self, session):
        u1 = User(email="  Alice@Example.com ", password_hash="x")
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        u2 = User(email="ALICE@example.com", password_hash="y")
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    @pytest.mark.parametrize("email", ["", "no-at-sign", "a@nodot"])
    def test_email_validation(self, email):
        with pytest.raises(ValueError):
            User(email=email, password_hash="x")

    def test_normalize_email(self):
        assert normalize_email("  Bob@EXAMPLE.org\n") == "bob@example.org"

    def test_timestamps_and_uuid_pk(self, session):
        u = UserFactory()

        assert u.id is not None
        assert u.created_at is not None
        assert u.updated_at is not None
        assert repr(u) == f"<User id={u.id}>"

    def test_delete_cascades_to_links_and_tokens(self, session):
        link = LinkFactory()
        owner = link.owner
        session.add(
            RefreshToken(user_id=owner.id, token_hash="f" * 64, expires_at=link.created_at)
        )
        session.commit()

        session.delete(owner)
        session.commit()

        assert session.execute(select(func.count()).select_from(Link)).scalar_one() == 0
        assert session.execute(select(func.count()).select_from(RefreshToken)).scalar_one() == 0
