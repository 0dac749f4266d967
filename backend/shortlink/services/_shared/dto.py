# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class WindowIn:
    """
    Input limit/offset contract.

    :param limit: Page size, clamped to ``[1, max_limit]`` by the service.
    :type limit: int
    :param offset: Number of rows to skip (``>= 0``).
    :type offset: int
    """

    limit: int = 20
    offset: int = 0


@dataclass(frozen=True, slots=True)
class WindowMeta:
    """
    Output window metadata.

    :param limit: Applied page size.
    :type limit: int
    :param offset: Applied offset.
    :type offset: int
    :param total: Total rows matching the filters.
    :type total: int
    """

    limit: int
    offset: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total
