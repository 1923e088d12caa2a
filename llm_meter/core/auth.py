"""HTTP Basic authentication against one shared credential.

Design principles:
- AccessGate holds the expected credential and does nothing but compare
- The FastAPI dependencies pull the gate from ``app.state``, so each app
  instance (and each test) can carry its own credential
- The Basic header is decoded as UTF-8 and never raises; a header that
  can't be decoded counts as no credentials
- Credentials never reach the logs; usernames appear only as a short hash
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.security.utils import get_authorization_scheme_param

from llm_meter.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


class Utf8HTTPBasic(HTTPBasic):
    """HTTP Basic credentials decoded as UTF-8, ``None`` when absent or unreadable.

    FastAPI's ``HTTPBasic`` decodes the header as ASCII and raises 401 on a
    malformed header even with ``auto_error=False``. Open endpoints must not
    fail on a stale header, and gated ones report it through our own 401.
    """

    async def __call__(self, request: Request) -> HTTPBasicCredentials | None:  # type: ignore[override]
        authorization = request.headers.get("Authorization")
        scheme, param = get_authorization_scheme_param(authorization)
        if not authorization or scheme.lower() != "basic":
            return None
        try:
            decoded = base64.b64decode(param, validate=True).decode("utf-8")
        except ValueError:
            # binascii.Error and UnicodeDecodeError are both ValueErrors
            logger.info("auth.undecodable_header")
            return None
        username, separator, password = decoded.partition(":")
        if not separator:
            logger.info("auth.undecodable_header")
            return None
        return HTTPBasicCredentials(username=username, password=password)


# scheme_name keeps the published OpenAPI scheme called "HTTPBasic"
basic_auth = Utf8HTTPBasic(auto_error=False, realm="llm-meter", scheme_name="HTTPBasic")


def _username_hash(username: str) -> str:
    return hashlib.sha256(username.encode()).hexdigest()[:16]


class AccessGate:
    """Stateless check of a username/password pair against fixed values.

    The expected values are stored as bytes at construction time and never
    change afterwards, so ``check`` can be called from any number of threads
    without synchronization.
    """

    def __init__(self, username: str, password: str) -> None:
        self._username = username.encode("utf-8")
        self._password = password.encode("utf-8")

    def check(self, username: str | None, password: str | None) -> bool:
        """Return True when both values match the configured credential byte for byte.

        Missing values never match. Both comparisons always run and use
        ``secrets.compare_digest`` so timing doesn't reveal which part was wrong.
        """

        if username is None or password is None:
            return False
        username_ok = secrets.compare_digest(username.encode("utf-8"), self._username)
        password_ok = secrets.compare_digest(password.encode("utf-8"), self._password)
        return username_ok and password_ok


def get_access_gate(request: Request) -> AccessGate:
    return request.app.state.access_gate


def authenticate(gate: AccessGate, credentials: HTTPBasicCredentials | None) -> None:
    """Raise AuthenticationAppError unless ``credentials`` pass ``gate``.

    Pure logic without request plumbing, for direct use in tests.
    """

    if credentials is None:
        logger.warning("auth.denied", extra={"reason": "missing_credentials"})
        raise AuthenticationAppError(
            code="unauthorized",
            message="Unauthorized",
            details={"context": {"hint": "Provide HTTP Basic credentials"}},
        )

    if not gate.check(credentials.username, credentials.password):
        logger.warning(
            "auth.denied",
            extra={
                "reason": "invalid_credentials",
                "username_hash": _username_hash(credentials.username),
            },
        )
        raise AuthenticationAppError(code="unauthorized", message="Unauthorized")

    logger.debug(
        "auth.success",
        extra={"username_hash": _username_hash(credentials.username)},
    )


async def require_credentials(
    gate: Annotated[AccessGate, Depends(get_access_gate)],
    credentials: Annotated[HTTPBasicCredentials | None, Depends(basic_auth)],
) -> None:
    """FastAPI dependency gating a route behind the shared credential.

    Usage:
        @router.post("/tiers", dependencies=[Depends(require_credentials)])

    Raises:
        AuthenticationAppError: rendered as 401 with ``WWW-Authenticate``.
    """

    authenticate(gate, credentials)


async def require_credentials_for_counter_read(
    request: Request,
    gate: Annotated[AccessGate, Depends(get_access_gate)],
    credentials: Annotated[HTTPBasicCredentials | None, Depends(basic_auth)],
) -> None:
    """Gate ``GET /my-llm`` only when AUTH_COUNTER_READ_REQUIRES_AUTH is set."""

    if not request.app.state.settings.auth.counter_read_requires_auth:
        return
    authenticate(gate, credentials)
