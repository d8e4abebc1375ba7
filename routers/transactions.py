from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

import services
import stats
from database import get_db
from schemas import (
    TransactionCreate, TransactionUpdate, TransactionResponse,
    TransactionFilter, StatsResponse, MessageResponse,
)
from security import get_current_user_id

router = APIRouter()


@router.get("", response_model=List[TransactionResponse])
def list_transactions(
        filters: TransactionFilter = Depends(),
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """List transactions, newest first, with optional filters"""
    return services.list_transactions(db, user_id, filters)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
        transaction_data: TransactionCreate,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Create a new transaction"""
    return services.create_transaction(db, user_id, transaction_data)


# Declared before /{transaction_id} so "stats" is not read as an id
@router.get("/stats", response_model=StatsResponse)
def get_stats(
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Monthly income/expense totals and per-category totals"""
    return StatsResponse(
        monthly=stats.monthly_stats(db, user_id),
        byCategory=stats.category_stats(db, user_id),
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
        transaction_id: int,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    return services.get_transaction(db, user_id, transaction_id)


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
        transaction_id: int,
        transaction_data: TransactionUpdate,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Replace every field of a transaction the user owns"""
    return services.update_transaction(db, user_id, transaction_id, transaction_data)


@router.delete("/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
        transaction_id: int,
        db: Session = Depends(get_db),
        user_id: int = Depends(get_current_user_id)
):
    """Delete a transaction"""
    services.delete_transaction(db, user_id, transaction_id)
    return {"message": "Transaction deleted"}
