# JWT helpers for the bearer-token identity the HTTP layer accepts

import jwt
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional


class JWTManager:
    """
    Issues and verifies access tokens.

    Tokens carry the external user identifier in 'sub'; role lookup happens
    against the users table on each request.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 access_token_expire_minutes: int = 1440):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes

    def create_access_token(self, data: Dict[str, Any]) -> str:
        """
        Args:
            data: claims to encode, usually {'sub': user_id}

        Returns:
            encoded JWT
        """
        to_encode = data.copy()

        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=self.access_token_expire_minutes)
        to_encode.update({"exp": expire, "iat": now})

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Returns:
            decoded claims, or None when the token is expired or invalid
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return None
        except jwt.PyJWTError:
            return None

    def refresh_token(self, token: str) -> Optional[str]:
        payload = self.verify_token(token)
        if not payload:
            return None

        payload.pop('exp', None)
        payload.pop('iat', None)

        return self.create_access_token(payload)
