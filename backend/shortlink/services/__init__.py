"""Service layer.

Subpackages
-----------
- ``_shared``: base service, unit-of-work helpers, service errors, DTOs and
  hexagonal ports.
- ``auth``: :class:`~shortlink.services.auth.service.AuthService`.
- ``sessions``: :class:`~shortlink.services.sessions.service.SessionStore`.
- ``links``: link management, short-code allocation and click recording.
- :mod:`~shortlink.services.rate_limit`: in-process sliding-window limiter.

Nothing is re-exported here: repositories import the ports package, and an
eager import of the services would close a cycle through the unit of work.
"""
