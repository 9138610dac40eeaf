"""Principal value object representing an authenticated caller.

Pure domain object with no external dependencies. Immutable (frozen dataclass).
Built by the gateway authentication middleware from headers set by the
upstream authentication layer.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated entity performing a request.

    Attributes:
        subject: Identity id issued by the identity store.
        roles: Role claims forwarded by the gateway. Informational only;
            deletion privilege is always resolved from the stored profile.
        email: Email forwarded by the gateway. None if absent.
    """

    subject: str
    roles: tuple[str, ...] = ()
    email: str | None = None
