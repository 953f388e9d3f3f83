from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session
from booking_auth.core.database import get_db
from booking_auth.api.dependencies import get_auth_service, get_caller_id
from booking_auth.services.auth_service import AuthService, AuthSession
from booking_auth.storage.local_storage import MediaStorage, storage

router = APIRouter(prefix="/auth", tags=["auth"])


class CamelModel(BaseModel):
    # The mobile client speaks camelCase JSON
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Request bodies accept missing fields so the service can report every
# violated field at once
class SignupRequest(CamelModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateProfileRequest(CamelModel):
    full_name: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class UserSummary(CamelModel):
    id: int
    full_name: str
    email: str


class UserProfile(UserSummary):
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    token: str
    user: UserSummary


class ProfileUpdateResponse(CamelModel):
    message: str
    user: UserSummary


class MessageResponse(CamelModel):
    message: str


class AvatarResponse(CamelModel):
    message: str
    profile_image: str


def get_media_storage() -> MediaStorage:
    return storage


def _auth_response(session: AuthSession) -> AuthResponse:
    return AuthResponse(token=session.token, user=UserSummary.model_validate(session.user))


# Handlers are plain `def` so FastAPI runs them in its threadpool and
# blocking database calls stay off the event loop

@router.post("/signup", response_model=AuthResponse)
def signup(
    body: SignupRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Register a user and return a session token"""
    session = service.signup(db, body.full_name, body.email, body.password)
    return _auth_response(session)


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Authenticate and return a session token"""
    session = service.login(db, body.email, body.password)
    return _auth_response(session)


@router.get("/user", response_model=UserProfile)
def get_profile(
    caller_id: int = Depends(get_caller_id),
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Get the caller's profile; the password hash is never part of it"""
    return service.get_profile(db, caller_id)


@router.put("/update-profile", response_model=ProfileUpdateResponse)
def update_profile(
    body: UpdateProfileRequest,
    caller_id: int = Depends(get_caller_id),
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    user = service.update_profile(db, caller_id, body.full_name)
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserSummary.model_validate(user),
    )


@router.put("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    caller_id: int = Depends(get_caller_id),
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    service.reset_password(db, caller_id, body.current_password, body.new_password)
    return MessageResponse(message="Password reset successfully")


@router.post("/upload-avatar", response_model=AvatarResponse)
def upload_avatar(
    avatar: Optional[UploadFile] = File(None),
    caller_id: int = Depends(get_caller_id),
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
    media: MediaStorage = Depends(get_media_storage),
):
    """Store a new avatar image and record its URL on the caller's profile"""
    reference = None
    if avatar is not None and avatar.filename:
        # A caller without a user record gets its 404 before anything is stored
        service.get_profile(db, caller_id)
        reference = media.save_avatar(avatar, caller_id)
    profile_image = service.update_avatar_reference(db, caller_id, reference)
    return AvatarResponse(message="Avatar uploaded successfully", profile_image=profile_image)
