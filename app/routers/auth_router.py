from fastapi import APIRouter, Request, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import NotAuthenticated, ValidationError
from app.models.schemas import LoginRequest, ChangePasswordRequest, CreateUserRequest
from app.models.user import User, UserRole
from app.services.auth_service import issue_session, clear_session, require_authenticated, require_admin
from app.services.user_service import UserService
from app.utils.report_builder import ReportBuilder
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login")
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    if not body.username or not body.password:
        raise ValidationError("Username and password are required")

    user = UserService.authenticate(db, body.username, body.password)
    if user is None:
        raise NotAuthenticated("Invalid username or password")

    issue_session(request, user)
    return {"success": True, "user": ReportBuilder.build_user(user)}


@router.post("/logout")
async def logout(request: Request):
    clear_session(request)
    return {"success": True}


@router.get("/user")
async def current_user(user: User = Depends(require_authenticated)):
    return {"success": True, "user": ReportBuilder.build_user(user)}


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(require_authenticated),
    db: Session = Depends(get_db)
):
    if not body.current_password or not body.new_password:
        raise ValidationError("Current password and new password are required")

    UserService.change_password(db, user.id, body.current_password, body.new_password)
    return {"success": True, "message": "Password changed successfully"}


@router.get("/users")
def list_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    users = UserService.list_users(db)
    return {"success": True, "users": [ReportBuilder.build_user(u) for u in users]}


@router.post("/users", status_code=201)
def create_user(
    body: CreateUserRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if not body.username or not body.password:
        raise ValidationError("Username and password are required")

    try:
        role = UserRole(body.role) if body.role else UserRole.MEMBER
    except ValueError:
        raise ValidationError(f"Unknown role: {body.role}")

    user = UserService.create_user(
        db,
        username=body.username,
        password=body.password,
        display_name=body.display_name,
        email=body.email,
        role=role
    )
    logger.info(f"Admin {admin.username} created user {user.username}")
    return {"success": True, "user": ReportBuilder.build_user(user)}
