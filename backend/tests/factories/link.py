"""Factory Boy definition for :class:`shortlink.models.link.Link`."""

from __future__ import annotations

import factory
from shortlink.models.link import Link

from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class LinkFactory(BaseFactory):
    class Meta:
        model = Link

    owner = factory.SubFactory(UserFactory)
    short_code = factory.Sequence(lambda n: f"code{n:04d}")
    target_url = factory.Sequence(lambda n: f"https://example.com/page/{n}")
    title = factory.Faker("sentence", nb_words=3)
    is_active = True
    click_count = 0
