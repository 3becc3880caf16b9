"""Caller identity for the dimension search service.

The service does not issue tokens. It only needs to know whether the inbound
request carries a verifiable caller identity, which in turn decides whether
unpublished data may be requested and whether private endpoints may be used.

Design
- ``IdentityVerifier`` decodes bearer JWTs signed by the identity service
- ``create_caller_dependency`` builds a FastAPI dependency that yields a
  ``CallerIdentity`` or ``None``; on public deployments it never looks at the
  request at all
- ``require_caller`` turns an absent caller into a 401
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import structlog

from .config import SearchConfig, Subnet
from .errors import UnauthenticatedRequestError

logger = structlog.get_logger("auth")


@dataclass(frozen=True)
class CallerIdentity:
    """Verified identity of the party making a request."""
    subject: str
    caller_type: str = "user"


class IdentityVerifier:
    """Verifies bearer tokens issued by the identity service.

    Tokens carry a ``sub`` claim and an optional ``type`` claim (``user`` or
    ``service``). Anything that fails verification is treated as no caller.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def decode(self, token: str) -> Dict[str, Any]:
        """Decode and verify a token, raising ``jwt.PyJWTError`` when invalid."""
        return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])

    def identify(self, token: str) -> Optional[CallerIdentity]:
        """Return the caller for ``token`` or ``None`` if it cannot be verified."""
        try:
            payload = self.decode(token)
        except jwt.ExpiredSignatureError:
            logger.warning("Caller token has expired")
            return None
        except jwt.PyJWTError as e:
            logger.warning("Caller token rejected", error=str(e))
            return None

        subject = payload.get("sub")
        if not subject:
            logger.warning("Caller token has no subject")
            return None
        return CallerIdentity(subject=subject, caller_type=payload.get("type", "user"))


def create_caller_dependency(config: SearchConfig) -> Callable:
    """Create the FastAPI dependency that resolves the request's caller."""
    optional_security = HTTPBearer(auto_error=False)
    verifier = IdentityVerifier(config.jwt_secret_key, config.jwt_algorithm)
    subnet = config.subnet

    def get_caller(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
    ) -> Optional[CallerIdentity]:
        """Resolve the caller, or ``None`` when absent or unverifiable.

        Identity is only checked on private deployments.
        """
        if subnet is not Subnet.PRIVATE:
            return None
        if not credentials:
            return None
        return verifier.identify(credentials.credentials)

    return get_caller


def require_caller(caller: Optional[CallerIdentity]) -> CallerIdentity:
    """Return ``caller`` or raise ``UnauthenticatedRequestError``."""
    if caller is None:
        raise UnauthenticatedRequestError()
    return caller
