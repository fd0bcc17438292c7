"""
Authorization and request-integrity checks for administrative actions.

Every action carries a nonce: a short-lived HS256 JWT whose "action"
claim names the action it was issued for. The nonce is checked
first, then the caller's privilege. Either failure aborts the
request before any state is touched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from cursor_gallery.core.config import SecurityConfig
from cursor_gallery.core.errors import AuthorizationError, IntegrityCheckError
from cursor_gallery.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Upload:
    """An uploaded file as received from the form handler."""

    filename: str
    data: bytes


@dataclass
class AdminRequest:
    """One administrative request as seen by the core."""

    # Whether the caller holds the manage privilege
    can_manage: bool

    nonce: Optional[str] = None

    # Submitted form fields (plain field -> value mapping)
    fields: Dict[str, Any] = field(default_factory=dict)

    upload: Optional[Upload] = None


class RequestGuard:
    """Issues and verifies JWT nonces, and checks privilege."""

    ALGORITHM = "HS256"

    def __init__(self, config: SecurityConfig):
        """
        Initialize request guard.

        Args:
            config: Security configuration (secret key, nonce lifetime)
        """
        self._key = config.secret_key
        self._lifetime = timedelta(seconds=config.nonce_lifetime_sec)

    def issue_nonce(self, action: str) -> str:
        """
        Create a nonce for ``action``.

        Returns:
            Signed JWT carrying the action, issue time and expiry
        """
        now = datetime.now(timezone.utc)
        claims = {
            "action": action,
            "iat": now,
            "nbf": now,
            "exp": now + self._lifetime,
        }
        return jwt.encode(claims, self._key, algorithm=self.ALGORITHM)

    def verify_nonce(self, token: Optional[str], action: str) -> None:
        """
        Check a nonce for ``action``.

        Raises:
            IntegrityCheckError: If the token is missing, malformed,
                expired, not yet valid or signed for something else
        """
        if not token:
            raise IntegrityCheckError("Security check failed: missing nonce")

        try:
            claims = jwt.decode(token, self._key, algorithms=[self.ALGORITHM])
        except ExpiredSignatureError:
            raise IntegrityCheckError("Security check failed: stale nonce") from None
        except JWTError:
            raise IntegrityCheckError("Security check failed: invalid nonce") from None

        if claims.get("action") != action:
            raise IntegrityCheckError("Security check failed: invalid nonce")

    def check(self, request: AdminRequest, action: str) -> None:
        """
        Run both checks for a request.

        Raises:
            IntegrityCheckError: If the nonce does not verify
            AuthorizationError: If the caller lacks the manage privilege
        """
        try:
            self.verify_nonce(request.nonce, action)
        except IntegrityCheckError as e:
            logger.warning(f"Rejected {action}: {e}")
            raise

        if not request.can_manage:
            logger.warning(f"Rejected {action}: unauthorized")
            raise AuthorizationError("Unauthorized access")
