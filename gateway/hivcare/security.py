"""Security and authentication utilities."""

import asyncio
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

import jwt
from jwt.exceptions import InvalidTokenError
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import structlog

from .config import settings, SECURITY_CONFIG, TABLES
from .db import db_manager, BackendError
from .models.common import UserRole

logger = structlog.get_logger()

# Bearer token handlers
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


class SecurityManager:
    """Verification of access tokens issued by the Supabase auth server."""

    def __init__(self):
        self.algorithm = settings.jwt_algorithm

    @property
    def secret_key(self) -> str:
        return settings.supabase_jwt_secret

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None):
        """Create a token in the auth server's format (local tooling and tests)."""
        to_encode = data.copy()
        expire = datetime.utcnow() + (expires_delta or timedelta(hours=1))
        to_encode.update({
            "exp": expire,
            "iat": datetime.utcnow(),
            "aud": settings.jwt_audience,
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """Decode and verify a token with the shared JWT secret."""
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=settings.jwt_audience,
            )
        except InvalidTokenError as e:
            logger.warning("Token verification failed", error=str(e))
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Return the token payload (`sub`, `email`).

        Without a configured JWT secret the token is checked against the auth
        server instead.
        """
        if self.secret_key:
            return self.decode_token(token)

        try:
            user = await db_manager.get_user(token)
        except BackendError:
            user = None
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return {"sub": user["id"], "email": user.get("email")}


# Global security manager
security_manager = SecurityManager()


class User:
    """Authenticated user with resolved role."""

    def __init__(
        self,
        id: str,
        email: Optional[str],
        role: UserRole,
        full_name: Optional[str] = None,
        access_token: Optional[str] = None,
    ):
        self.id = id
        self.email = email
        self.role = role
        self.full_name = full_name
        self.access_token = access_token

    def has_role(self, role: str) -> bool:
        return self.role == UserRole(role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_super_admin(self) -> bool:
        return self.full_name == SECURITY_CONFIG["super_admin_name"]

    def can_access_patient(self, patient_id: str) -> bool:
        """Patients see their own records; admins see everyone's."""
        if self.is_admin:
            return True
        return self.role == UserRole.PATIENT and str(patient_id) == self.id


async def get_user_from_token(token_payload: Dict[str, Any], token: Optional[str] = None) -> User:
    """Resolve role and profile name for a verified token."""
    user_id = token_payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID"
        )

    try:
        role_row, profile = await asyncio.gather(
            db_manager.fetch_one(TABLES["user_roles"], columns="role", eq={"user_id": user_id}),
            db_manager.fetch_one(TABLES["profiles"], columns="full_name", eq={"user_id": user_id}),
        )
    except BackendError as e:
        logger.error("Failed to resolve user role", user_id=user_id, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Failed to verify user credentials"
        )

    # New accounts get the patient role from the backend default
    role = UserRole.PATIENT
    if role_row:
        try:
            role = UserRole(role_row["role"])
        except ValueError:
            logger.warning("Unknown role, treating as patient", user_id=user_id, role=role_row["role"])

    return User(
        id=user_id,
        email=token_payload.get("email"),
        role=role,
        full_name=profile.get("full_name") if profile else None,
        access_token=token,
    )


async def authenticate(token: str) -> User:
    payload = await security_manager.verify_token(token)
    return await get_user_from_token(payload, token)


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> User:
    """Get current authenticated user."""
    return await authenticate(credentials.credentials)


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current active user (additional checks can be added here)."""
    return current_user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> Optional[User]:
    """Authenticated user when a valid bearer token is present, else None."""
    if credentials is None:
        return None
    try:
        return await authenticate(credentials.credentials)
    except HTTPException:
        return None


async def user_id_from_token(token: str) -> Optional[str]:
    """Subject of a token, or None if it does not verify."""
    try:
        payload = await security_manager.verify_token(token)
    except HTTPException:
        return None
    return payload.get("sub")


# Role-based access control
def require_role(required_role: str):
    """Dependency factory requiring a specific role."""
    def role_checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not current_user.has_role(required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions: {required_role} role required"
            )
        return current_user
    return role_checker


# Common role dependencies
require_admin = require_role("admin")
require_patient = require_role("patient")


class AuditLogger:
    """Audit trail of access to patient data, written to the structured log."""

    @staticmethod
    def log_access(
        user: User,
        action: str,
        resource: str,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict] = None
    ):
        logger.info(
            "audit",
            actor_id=user.id,
            actor_role=user.role.value,
            action=f"access.{action}",
            entity_type=resource,
            entity_id=resource_id,
            metadata=metadata or {},
        )


audit_logger = AuditLogger()


# Security headers middleware configuration
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin"
}
