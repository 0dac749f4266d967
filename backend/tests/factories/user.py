"""Factory Boy definition for :class:`shortlink.models.user.User`."""

from __future__ import annotations

import factory
from shortlink.models.user import User
from werkzeug.security import generate_password_hash

from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`shortlink.models.user.User` instances.

    Pass ``password=...`` to choose the plaintext; only its scrypt hash is
    stored.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    password_hash = factory.LazyAttribute(
        lambda o: generate_password_hash(o.password, method="scrypt")
    )
