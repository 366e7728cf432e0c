# Basic-auth credential check with constant-time comparison to prevent timing attacks.
# Fails closed: with no expected credentials configured, every request is rejected.


import base64
import binascii
import secrets

import structlog

from editgate.exceptions import AuthenticationError

logger = structlog.get_logger(__name__)

_SCHEME = "basic"


def parse_basic_credentials(header: str | None) -> tuple[str, str] | None:
    """Decode an ``Authorization: Basic <base64(user:pass)>`` header.

    Splits on the first colon only, so passwords may contain colons.
    Returns None for a missing header, another scheme, or a malformed payload.
    """
    if not header:
        return None
    scheme, _, encoded = header.strip().partition(" ")
    if scheme.lower() != _SCHEME or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


class BasicAuthenticator:
    """Compare request credentials against the configured static pair."""

    def __init__(self, username: str, password: str, *, realm: str = "API Access") -> None:
        self._username = username
        self._password = password
        self._realm = realm

    @property
    def is_configured(self) -> bool:
        return bool(self._username and self._password)

    @property
    def challenge(self) -> str:
        """Value for the WWW-Authenticate response header."""
        return f'Basic realm="{self._realm}"'

    def authenticate(self, header: str | None) -> bool:
        if not self.is_configured:
            logger.error("basic_auth_not_configured", hint="Set USER_NAME and PASSWORD")
            return False

        credentials = parse_basic_credentials(header)
        if credentials is None:
            logger.warning("auth_rejected", reason="missing_or_malformed_header")
            return False

        username, password = credentials
        # Both comparisons always run; combining them with `and` up front
        # would skip the password check for a wrong username.
        username_ok = secrets.compare_digest(username.encode(), self._username.encode())
        password_ok = secrets.compare_digest(password.encode(), self._password.encode())
        if not (username_ok and password_ok):
            logger.warning("auth_rejected", reason="invalid_credentials")
            return False
        return True

    def require(self, header: str | None) -> None:
        """Raise AuthenticationError unless the header carries valid credentials."""
        if not self.authenticate(header):
            raise AuthenticationError(self.challenge)
