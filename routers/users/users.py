from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from config import get_db
from models import User, Cart
from routers.auth.auth import get_current_user
from routers.auth.helpers import auth_helpers
from dependencies.rbac import require_user_management
from utils.response_helpers import safe_model_validate, safe_model_validate_list, user_to_dict, parse_uuid
from .schemas import (
    UserRegister, UserLogin, GoogleLogin, UserProfileUpdate, AdminUserUpdate,
    UserResponse, UserAuthResponse, UserUpdateResponse, UserListResponse, SupplierSummary,
)
from typing import Optional, List
import math
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Users"])

ROLE_FIELDS = {
    "buyer": {"postal_code"},
    "supplier": {"company", "phone"},
}
ROLE_SPECIFIC = {"postal_code", "company", "phone"}


def auth_response(user: User, message: str) -> UserAuthResponse:
    return UserAuthResponse(
        message=message,
        token=auth_helpers.create_user_token(user),
        role=user.role,
        user=safe_model_validate(UserResponse, user_to_dict(user))
    )


async def get_user_or_404(db: AsyncSession, user_id) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


async def apply_user_update(db: AsyncSession, user: User, update_data: dict):
    """Partial update; role-specific fields only land on the matching role"""
    new_email = update_data.get("email")
    if new_email and new_email != user.email:
        existing = await db.execute(select(User).where(User.email == new_email, User.id != user.id))
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already in use"
            )

    if update_data.get("role"):
        user.role = update_data["role"]

    allowed_role_fields = ROLE_FIELDS.get(user.role, set())
    for field, value in update_data.items():
        if field == "role" or value is None:
            continue
        if field in ROLE_SPECIFIC and field not in allowed_role_fields:
            continue
        setattr(user, field, value)


@router.post("/register", response_model=UserAuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    try:
        existing_user = await db.execute(select(User).where(User.email == user_data.email))
        if existing_user.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists with this email"
            )

        new_user = User(
            username=user_data.username,
            email=user_data.email,
            password_hash=auth_helpers.hash_password(user_data.password),
            role=user_data.role,
            address=user_data.address,
            city=user_data.city,
            country=user_data.country,
        )
        if user_data.role == "buyer":
            new_user.postal_code = user_data.postal_code
        else:
            new_user.company = user_data.company
            new_user.phone = user_data.phone

        db.add(new_user)
        await db.commit()
        await db.refresh(new_user)

        logger.info(f"Registered {new_user.role} {new_user.id}")
        return auth_response(new_user, f"{new_user.role.title()} registered successfully")

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Registration failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )


@router.post("/login", response_model=UserAuthResponse)
async def login(
    login_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    try:
        result = await db.execute(select(User).where(User.email == login_data.email))
        user = result.scalar_one_or_none()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User not found"
            )

        if not user.password_hash:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This account uses Google sign-in"
            )

        if not auth_helpers.verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Incorrect password"
            )

        return auth_response(user, "Login successful")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )


@router.post("/google-login", response_model=UserAuthResponse)
async def google_login(
    login_data: GoogleLogin,
    db: AsyncSession = Depends(get_db)
):
    if not login_data.token_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token ID is required"
        )

    claims = auth_helpers.verify_google_token(login_data.token_id)

    try:
        email = (claims.get("email") or "").lower()
        if not email:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Google account has no email"
            )

        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            user = User(
                username=(claims.get("name") or email.split("@")[0])[:50],
                email=email,
                role="buyer",
                google_id=claims.get("sub"),
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            logger.info(f"Created buyer {user.id} from Google sign-in")

        return auth_response(user, "Login successful")

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Google login failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Google login failed"
        )


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's own profile"""
    user = await get_user_or_404(db, parse_uuid(current_user["id"], "user"))
    return safe_model_validate(UserResponse, user_to_dict(user))


@router.put("/profile", response_model=UserUpdateResponse)
async def update_profile(
    profile_update: UserProfileUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        user = await get_user_or_404(db, parse_uuid(current_user["id"], "user"))
        await apply_user_update(db, user, profile_update.model_dump(exclude_unset=True))

        await db.commit()
        await db.refresh(user)

        return UserUpdateResponse(
            message="Profile updated successfully",
            user=safe_model_validate(UserResponse, user_to_dict(user))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Profile update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )


@router.delete("/profile")
async def delete_own_account(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    try:
        user = await get_user_or_404(db, parse_uuid(current_user["id"], "user"))
        await db.execute(delete(Cart).where(Cart.user_id == user.id))
        await db.delete(user)
        await db.commit()

        logger.info(f"User {user.id} deleted own account")
        return {"message": "Account deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Account deletion failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete account"
        )


@router.get("/suppliers", response_model=List[SupplierSummary])
async def list_suppliers(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management)
):
    """Suppliers for the stock form dropdown"""
    result = await db.execute(
        select(User).where(User.role == "supplier").order_by(User.username)
    )
    return [
        SupplierSummary(id=str(user.id), username=user.username)
        for user in result.scalars().all()
    ]


@router.get("/", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management)
):
    try:
        query = select(User)
        count_query = select(func.count(User.id))
        if role:
            query = query.where(User.role == role)
            count_query = count_query.where(User.role == role)

        total = (await db.execute(count_query)).scalar() or 0

        offset = (page - 1) * limit
        result = await db.execute(
            query.order_by(User.created_at.desc()).offset(offset).limit(limit)
        )
        users = [user_to_dict(user) for user in result.scalars().all()]

        return UserListResponse(
            users=safe_model_validate_list(UserResponse, users),
            total_pages=math.ceil(total / limit),
            current_page=page,
            total=total
        )

    except Exception as e:
        logger.error(f"Failed to list users: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve users"
        )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management)
):
    user = await get_user_or_404(db, parse_uuid(user_id, "user"))
    return safe_model_validate(UserResponse, user_to_dict(user))


@router.put("/{user_id}", response_model=UserUpdateResponse)
async def update_user(
    user_id: str,
    user_update: AdminUserUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management)
):
    try:
        user = await get_user_or_404(db, parse_uuid(user_id, "user"))
        await apply_user_update(db, user, user_update.model_dump(exclude_unset=True))

        await db.commit()
        await db.refresh(user)

        logger.info(f"Admin {current_user['id']} updated user {user.id}")
        return UserUpdateResponse(
            message="User updated successfully",
            user=safe_model_validate(UserResponse, user_to_dict(user))
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"User update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user"
        )


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_user_management)
):
    try:
        user = await get_user_or_404(db, parse_uuid(user_id, "user"))
        await db.execute(delete(Cart).where(Cart.user_id == user.id))
        await db.delete(user)
        await db.commit()

        logger.info(f"Admin {current_user['id']} deleted user {user_id}")
        return {"message": "User deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"User deletion failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete user"
        )
