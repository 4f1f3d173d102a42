"""Auth: staff registration, login/logout and profile.

SECURITY FEATURES:
- Password hashing with bcrypt
- Minimum password length
- httpOnly, SameSite cookie carrying the JWT (bearer header also accepted)
- Generic login failure message to prevent user enumeration
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from pharmatrust.api.deps import AuthSession, get_db, get_current_user, get_optional_session, require_roles
from pharmatrust.api.payload import parse_model, payload_with_file
from pharmatrust.api.response import ok
from pharmatrust.core.audit import AuditLog
from pharmatrust.core.config import settings
from pharmatrust.core.exceptions import BusinessError
from pharmatrust.core.permissions import ADMIN, ADMIN_ONLY, CASHIER
from pharmatrust.core.security import create_access_token, get_password_hash, verify_password
from pharmatrust.models.user import User
from pharmatrust.schemas.user import ProfileUpdate, UserCreate, UserLogin, UserResponse
from pharmatrust.services.file_storage import delete_upload, save_upload

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _with_session_cookie(response, token: str):
    response.set_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # seconds
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return response


def _user_data(user: User) -> dict:
    return UserResponse.model_validate(user).to_wire()


@router.post("/register")
def register(
    request: Request,
    form=Depends(payload_with_file("profileImage")),
    db: Session = Depends(get_db),
    caller: Optional[AuthSession] = Depends(get_optional_session),
):
    """
    Register a staff account.

    Anonymous sign-ups are always cashiers and are logged straight in. An admin
    session may register any role; the admin stays logged in as themselves.
    Accepts JSON or multipart with an optional ``profileImage``.
    """
    data, upload = form
    payload = parse_model(UserCreate, data)

    by_admin = caller is not None and caller.role == ADMIN
    if payload.role != CASHIER and not by_admin:
        AuditLog.log_access_denied(
            request.method, request.url.path, caller.user.id if caller else None,
            reason=f"self-registration as {payload.role}",
        )
        raise BusinessError.forbidden(f"register as {payload.role} without admin session")

    if db.query(User).filter(User.email == payload.email).first():
        AuditLog.log_authentication("register", payload.email, _client_ip(request), False, reason="email taken")
        raise BusinessError.conflict("User already exists with this email")

    image_path = save_upload(upload, "profileImage") if upload else None
    user = User(
        name=payload.name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        phone=payload.phone,
        address=payload.address,
        profile_image=image_path,
    )
    try:
        db.add(user)
        db.commit()
    except Exception:
        delete_upload(image_path)
        raise
    db.refresh(user)
    AuditLog.log_authentication("register", user.email, _client_ip(request), True)

    token = create_access_token(subject=str(user.id), role=user.role)
    response = ok(
        "User registered successfully",
        {"user": _user_data(user), "token": token},
        status_code=status.HTTP_201_CREATED,
    )
    if by_admin:
        return response
    return _with_session_cookie(response, token)


@router.post("/login")
def login(data: UserLogin, request: Request, db: Session = Depends(get_db)):
    """
    Login; the token is returned in the body and set as an httpOnly cookie.
    """
    email = data.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        AuditLog.log_authentication("login", email, _client_ip(request), False, reason="bad credentials")
        raise BusinessError.unauthorized(f"login failed for {email}", message="Invalid email or password")
    if not user.is_active:
        AuditLog.log_authentication("login", email, _client_ip(request), False, reason="deactivated")
        raise BusinessError.unauthorized(f"user {user.id} deactivated", message="Account is deactivated")

    AuditLog.log_authentication("login", email, _client_ip(request), True)
    token = create_access_token(subject=str(user.id), role=user.role)
    response = ok("Login successful", {"user": _user_data(user), "token": token})
    return _with_session_cookie(response, token)


@router.post("/logout")
def logout(request: Request, current_user: User = Depends(get_current_user)):
    """Logout by clearing the session cookie."""
    AuditLog.log_authentication("logout", current_user.email, _client_ip(request), True)
    response = ok("Logged out successfully")
    response.delete_cookie(
        key=settings.TOKEN_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return response


@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return ok("Profile retrieved successfully", {"user": _user_data(current_user)})


@router.put("/profile")
def update_profile(
    form=Depends(payload_with_file("profileImage")),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Name, phone, address and profile image. Email and role are not self-editable."""
    data, upload = form
    payload = parse_model(ProfileUpdate, data)

    previous_image = current_user.profile_image
    image_path = save_upload(upload, "profileImage") if upload else None

    for key, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(current_user, key, value)
    if image_path:
        current_user.profile_image = image_path
    try:
        db.commit()
    except Exception:
        delete_upload(image_path)
        raise
    if image_path:
        delete_upload(previous_image)
    db.refresh(current_user)
    return ok("Profile updated successfully", {"user": _user_data(current_user)})


@router.get("/users")
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*ADMIN_ONLY)),
):
    users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return ok(
        "Users retrieved successfully",
        {"users": [_user_data(u) for u in users], "count": len(users)},
    )
