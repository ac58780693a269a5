import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, JWT_AUDIENCE, SUPABASE_JWT_SECRET
from .database import get_db
from .models import Organization, Supervisor, User, UserOrganization

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# Roles allowed to manage the calendar and override rotation rules
SCHEDULING_ROLES = ("admin", "calendar_keeper")
FINANCIAL_ROLES = ("admin", "treasurer")


def verify_access_token(token: str) -> dict:
    """
    Verify an HS256 access token issued by the auth provider.
    Returns the decoded claims or raises a 401.
    """
    try:
        claims = jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Expired token presented")
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ Token verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid authentication token") from e

    logger.debug(f"✅ Token verified for user: {claims.get('email')}")
    return claims


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer token, creating a profile on first sign in"""

    if not credentials:
        logger.error("❌ No credentials provided")
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    claims = verify_access_token(token)

    auth_user_id = claims.get("sub")
    email = (claims.get("email") or "").strip().lower()
    metadata = claims.get("user_metadata") or {}

    if not auth_user_id:
        logger.error(f"❌ Token missing sub claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.auth_user_id == auth_user_id).first()
    if user:
        return user

    if email:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.info(f"🔄 Relinking profile {email} to auth user {auth_user_id}")
            existing_user.auth_user_id = auth_user_id
            db.commit()
            db.refresh(existing_user)
            return existing_user

    logger.info(f"🆕 Creating new profile: {email}")
    user = User(
        auth_user_id=auth_user_id,
        email=email or f"{auth_user_id}@users.invalid",
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        display_name=metadata.get("display_name") or claims.get("name"),
        family_group=metadata.get("family_group"),
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"✅ New profile created: {user.email}")
    except IntegrityError as e:
        db.rollback()
        # Email was taken between the check and the insert
        logger.error(f"❌ Email {email} was taken by another account (race condition)")
        raise HTTPException(
            status_code=409,
            detail="This email is already registered. Please sign in with your existing account.",
        ) from e

    return user


def is_supervisor(db: Session, user: User) -> bool:
    """Active supervisors can see and manage every organization"""
    if not user.email:
        return False
    return (
        db.query(Supervisor)
        .filter(Supervisor.email == user.email.lower(), Supervisor.is_active.is_(True))
        .first()
        is not None
    )


async def get_supervisor_user(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    if not is_supervisor(db, user):
        logger.warning(f"⚠️ Non-supervisor {user.email} attempted a supervisor action")
        raise HTTPException(status_code=403, detail="Supervisor access required")
    return user


@dataclass
class OrgAccess:
    """Resolved caller context for an organization-scoped request"""

    user: User
    organization: Organization
    role: Optional[str]
    is_supervisor: bool = False

    @property
    def can_schedule(self) -> bool:
        return self.is_supervisor or self.role in SCHEDULING_ROLES

    @property
    def can_manage_finances(self) -> bool:
        return self.is_supervisor or self.role in FINANCIAL_ROLES

    @property
    def is_admin(self) -> bool:
        return self.is_supervisor or self.role == "admin"


def resolve_org_access(db: Session, user: User, organization_id: str) -> OrgAccess:
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise HTTPException(status_code=404, detail="Organization not found")

    membership = (
        db.query(UserOrganization)
        .filter(
            UserOrganization.user_id == user.id,
            UserOrganization.organization_id == organization_id,
        )
        .first()
    )
    supervisor = is_supervisor(db, user)
    if not membership and not supervisor:
        raise HTTPException(status_code=403, detail="Not a member of this organization")

    return OrgAccess(
        user=user,
        organization=organization,
        role=membership.role if membership else None,
        is_supervisor=supervisor,
    )


def require_org_role(*roles: str):
    """
    Dependency factory for routes under /organizations/{organization_id}.
    With no roles any member passes; admins and supervisors pass every check.
    """

    async def dependency(
        organization_id: str,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> OrgAccess:
        access = resolve_org_access(db, user, organization_id)
        if roles and not access.is_admin and access.role not in roles:
            logger.warning(
                f"⚠️ User {user.email} with role {access.role} denied; requires one of {roles}"
            )
            raise HTTPException(
                status_code=403,
                detail=f"This action requires one of the roles: {', '.join(roles)}",
            )
        return access

    return dependency
