from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

import services
from database import get_db
from schemas import CategoryCreate, CategoryUpdate, CategoryResponse, MessageResponse
from security import get_current_user_id
from common.enum import TransactionTypeEnum

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
def list_categories(
        type: Optional[TransactionTypeEnum] = None,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """List the user's categories together with the shared ones"""
    return services.list_categories(db, user_id, type)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
        category_data: CategoryCreate,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    return services.create_category(db, user_id, category_data)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
        category_id: int,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Get a specific category"""
    return services.get_category(db, user_id, category_id)


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
        category_id: int,
        category_data: CategoryUpdate,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Rename or re-type a category the user owns"""
    return services.update_category(db, user_id, category_id, category_data)


@router.delete("/{category_id}", response_model=MessageResponse)
def delete_category(
        category_id: int,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Delete a category that no transaction uses"""
    services.delete_category(db, user_id, category_id)
    return {"message": "Category deleted"}
