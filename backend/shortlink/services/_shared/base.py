# shortlink/services/_shared/base.py
from __future__ import annotations

from shortlink.core import errors as api_errors
from shortlink.services._shared.dto import WindowIn
from shortlink.services._shared.errors import (
    AllocationExhaustedError,
    AuthenticationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
)
from shortlink.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


def translate_service_error(exc: ServiceError) -> api_errors.APIError:
    """
    Map a service-level error onto its RFC 7807 API error.

    :param exc: Exception raised within a service.
    :type exc: ServiceError
    :returns: API error carrying status and stable ``code``.
    :rtype: shortlink.core.errors.APIError
    """
    if isinstance(exc, NotFoundError):
        return api_errors.NotFound(str(exc))
    if isinstance(exc, ConflictError):
        return api_errors.Conflict(str(exc))
    if isinstance(exc, AuthenticationError):
        return api_errors.Unauthorized(str(exc))
    if isinstance(exc, InvalidInputError):
        return api_errors.ValidationFailed(str(exc))
    if isinstance(exc, AllocationExhaustedError):
        return api_errors.AllocationExhausted(str(exc))
    # Any other ServiceError subclass → 400 Bad Request
    return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Offer shared validation helpers (limit/offset windows).

    Notes
    -----
    Services never touch the global session directly; they go through a Unit
    of Work and return DTOs, never ORM instances.
    """

    MAX_WINDOW = 100

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return SQLAlchemyReadOnlyUnitOfWork()

    # ----------------------- Validation utilities ---------------------------

    def ensure_window(self, *, limit: int, offset: int) -> WindowIn:
        """
        Clamp a limit/offset pair into a safe window.

        :param limit: Requested page size.
        :param offset: Requested offset.
        :returns: Window with ``1 <= limit <= MAX_WINDOW`` and ``offset >= 0``.
        :rtype: WindowIn
        """
        return WindowIn(limit=min(max(1, int(limit)), self.MAX_WINDOW), offset=max(0, int(offset)))
