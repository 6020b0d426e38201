from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Admin
from dependencies.rbac import ADMIN_ROLES
from utils.response_helpers import admin_to_dict, safe_model_validate, parse_uuid
from .schemas import AdminLogin, AdminAuthResponse, AdminResponse
from .helpers import auth_helpers
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/auth", tags=["Admin Authentication"])

security = HTTPBearer()


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security)
):
    """Get current user from JWT token"""
    current_user = auth_helpers.verify_token(credentials.credentials)
    request.state.current_user = current_user
    return current_user


async def get_current_admin(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Like get_current_user but the token must belong to an active admin"""
    if current_user["role"] not in ADMIN_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    admin_id = parse_uuid(current_user["id"], "admin")
    result = await db.execute(select(Admin).where(Admin.id == admin_id))
    admin = result.scalar_one_or_none()
    if not admin or admin.status != "active":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin not found or disabled"
        )

    request.state.admin = admin
    return current_user


@router.post("/login", response_model=AdminAuthResponse)
async def admin_login(
    login_data: AdminLogin,
    db: AsyncSession = Depends(get_db)
):
    try:
        result = await db.execute(
            select(Admin).where(Admin.email == login_data.email, Admin.status == "active")
        )
        admin = result.scalar_one_or_none()
        if not admin:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Admin not found or disabled"
            )

        if not auth_helpers.verify_password(login_data.password, admin.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        logger.info(f"Admin {admin.id} logged in")
        return AdminAuthResponse(
            message="Login successful",
            token=auth_helpers.create_admin_token(admin),
            admin=safe_model_validate(AdminResponse, admin_to_dict(admin))
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Admin login failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )


@router.get("/me", response_model=AdminResponse)
async def get_admin_me(
    request: Request,
    current_user = Depends(get_current_admin)
):
    return safe_model_validate(AdminResponse, admin_to_dict(request.state.admin))
