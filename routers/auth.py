from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import services
from config import Settings
from database import get_db
from schemas import UserRegister, UserLogin, Token, UserResponse
from security import create_access_token, get_current_user_id, get_settings

router = APIRouter()


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(
        user_data: UserRegister,
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings)
):
    """Register a new user and log them in"""
    user = services.create_user(db, user_data)
    return {
        "token": create_access_token(user.id, settings),
        "user": user
    }


@router.post("/login", response_model=Token)
def login(
        login_data: UserLogin,
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings)
):
    """Exchange email and password for an access token"""
    user = services.authenticate_user(db, login_data.email, login_data.password)
    return {
        "token": create_access_token(user.id, settings),
        "user": user
    }


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Get current user information"""
    return services.get_user(db, user_id)
