from fastapi import HTTPException, status
from passlib.context import CryptContext
from google.oauth2 import id_token
from google.auth.transport import requests as google_requests
from config import (
    JWT_SECRET_KEY, JWT_ALGORITHM, BCRYPT_ROUNDS, GOOGLE_CLIENT_ID,
    USER_TOKEN_EXPIRE_DAYS, ADMIN_TOKEN_EXPIRE_HOURS,
)
from datetime import datetime, timedelta, timezone
import jwt
import logging

logger = logging.getLogger(__name__)


class AuthHelpers:
    """Helper functions for authentication operations"""

    def __init__(self):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=BCRYPT_ROUNDS
        )

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        return self.pwd_context.verify(password, password_hash)

    def create_token(self, subject_id, role: str, expires_delta: timedelta) -> str:
        """Sign a {id, role, exp} token"""
        payload = {
            "id": str(subject_id),
            "role": role,
            "exp": datetime.now(timezone.utc) + expires_delta,
        }
        return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)

    def create_user_token(self, user) -> str:
        return self.create_token(user.id, user.role, timedelta(days=USER_TOKEN_EXPIRE_DAYS))

    def create_admin_token(self, admin) -> str:
        return self.create_token(admin.id, admin.role, timedelta(hours=ADMIN_TOKEN_EXPIRE_HOURS))

    def verify_token(self, token: str) -> dict:
        """
        Verify JWT token locally
        Returns {"id", "role"} from the token payload
        """
        try:
            payload = jwt.decode(
                token,
                JWT_SECRET_KEY,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": True,
                    "verify_signature": True,
                    "require": ["exp"],
                }
            )

            subject_id = payload.get("id")
            if not subject_id:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid token: missing user ID"
                )

            return {"id": subject_id, "role": payload.get("role")}

        except HTTPException:
            raise
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token"
            )
        except Exception as e:
            logger.error(f"JWT verification failed: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token verification failed"
            )

    def verify_google_token(self, token_id: str) -> dict:
        """Verify a Google sign-in ID token and return its claims"""
        try:
            return id_token.verify_oauth2_token(
                token_id,
                google_requests.Request(),
                GOOGLE_CLIENT_ID
            )
        except ValueError as e:
            logger.warning(f"Google token rejected: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Google authentication failed"
            )


auth_helpers = AuthHelpers()
