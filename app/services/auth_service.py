"""
Token service for issuing and verifying signed user tokens.
"""

import logging
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from app.config import settings
from app.errors import BadAuthError, BadAuthHeaderError

logger = logging.getLogger(__name__)

class AuthService:
    """Signs and validates JWTs carrying a single `user` claim"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm

        if self.secret == "UNSECURE_SECRET_TOKEN":
            logger.warning("JWT_SECRET not configured, using the default development secret")

    def create_token(self, user: str) -> str:
        return jwt.encode({"user": user}, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> str:
        """
        Verify a token and return the username it was issued for.

        Raises:
            BadAuthHeaderError: token is malformed, badly signed or not HMAC-signed
            BadAuthError: token carries no usable `user` claim
        """
        try:
            claims: Dict[str, Any] = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Rejected auth token: {e}")
            raise BadAuthHeaderError()

        user = claims.get("user")
        if not isinstance(user, str) or not user:
            raise BadAuthError()
        return user

    def extract_bearer_token(self, *header_values: Optional[str]) -> str:
        """
        Return the token from the first header value in `Bearer <token>` form.
        """
        for value in header_values:
            if not value:
                continue
            parts = value.split(" ", 1)
            if parts[0] == "Bearer":
                if len(parts) != 2 or not parts[1]:
                    break
                return parts[1]
        raise BadAuthHeaderError()

# Global service instance
_auth_service = None

def get_auth_service() -> AuthService:
    """Get or create token service instance"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
