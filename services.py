from typing import List, Optional

import structlog
from sqlalchemy import delete, exists, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from exceptions import (
    CategoryInUse, DuplicateUser, InputValidationError, InvalidCredentials,
    NotFound, Unauthorized, field_error,
)
from models import Category, Transaction, User
from schemas import (
    CategoryCreate, CategoryUpdate, TransactionCreate, TransactionFilter,
    TransactionUpdate, UserRegister,
)
from security import hash_password, verify_password

logger = structlog.get_logger(__name__)

CATEGORY_NOT_FOUND = "Category not found or not owned by user"
TRANSACTION_NOT_FOUND = "Transaction not found"


# ---------------- USERS ---------------- #

def create_user(db: Session, data: UserRegister) -> User:
    if db.query(User).filter(User.email == data.email).first():
        raise DuplicateUser()

    db_user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise DuplicateUser()
    db.refresh(db_user)

    logger.info("user_registered", user_id=db_user.id)
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()

    if not verify_password(password, user.password_hash if user else None):
        logger.info("login_failed")
        raise InvalidCredentials()

    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise Unauthorized("User not found")
    return user


# ---------------- CATEGORIES ---------------- #

def _visible_categories(db: Session, user_id: int):
    return db.query(Category).filter(
        or_(Category.user_id == user_id, Category.user_id.is_(None))
    )


def list_categories(db: Session, user_id: int, category_type=None) -> List[Category]:
    """Categories owned by the user plus the shared ones, by name."""
    query = _visible_categories(db, user_id)
    if category_type:
        query = query.filter(Category.type == category_type)
    return query.order_by(Category.name, Category.id).all()


def get_category(db: Session, user_id: int, category_id: int) -> Category:
    category = _visible_categories(db, user_id).filter(Category.id == category_id).first()
    if not category:
        raise NotFound("Category not found")
    return category


def create_category(db: Session, user_id: int, data: CategoryCreate) -> Category:
    category = Category(name=data.name, type=data.type, user_id=user_id)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("category_created", user_id=user_id, category_id=category.id)
    return category


def update_category(db: Session, user_id: int, category_id: int, data: CategoryUpdate) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id
    ).first()

    if not category:
        raise NotFound(CATEGORY_NOT_FOUND)

    category.name = data.name
    category.type = data.type
    db.commit()
    db.refresh(category)
    logger.info("category_updated", user_id=user_id, category_id=category_id)
    return category


def _category_in_use(category_id: int):
    return exists().where(Transaction.category_id == category_id)


def delete_category(db: Session, user_id: int, category_id: int) -> None:
    """Delete an owned category that no transaction references.

    The reference check and the delete are one statement, so a transaction
    inserted concurrently cannot slip in between them.
    """
    result = db.execute(
        delete(Category)
        .where(
            Category.id == category_id,
            Category.user_id == user_id,
            ~_category_in_use(category_id),
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        db.rollback()
        # Referenced categories are reported as in use whoever owns them
        if db.query(_category_in_use(category_id)).scalar():
            raise CategoryInUse()
        raise NotFound(CATEGORY_NOT_FOUND)

    db.commit()
    logger.info("category_deleted", user_id=user_id, category_id=category_id)


# ---------------- TRANSACTIONS ---------------- #

def _ensure_category_usable(db: Session, user_id: int, category_id: int) -> None:
    if not _visible_categories(db, user_id).filter(Category.id == category_id).first():
        raise InputValidationError([field_error("category_id", "Category not found")])


def _owned_transaction(db: Session, user_id: int, transaction_id: int) -> Optional[Transaction]:
    return db.query(Transaction).options(joinedload(Transaction.category)).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    ).first()


def list_transactions(db: Session, user_id: int, filters: Optional[TransactionFilter] = None) -> List[Transaction]:
    """The user's transactions with their category, newest first."""
    query = db.query(Transaction).options(joinedload(Transaction.category)).filter(
        Transaction.user_id == user_id
    )

    if filters is not None:
        if filters.type:
            query = query.filter(Transaction.type == filters.type)
        if filters.category_id is not None:
            query = query.filter(Transaction.category_id == filters.category_id)
        if filters.start_date:
            query = query.filter(Transaction.date >= filters.start_date)
        if filters.end_date:
            query = query.filter(Transaction.date <= filters.end_date)

    return query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()


def get_transaction(db: Session, user_id: int, transaction_id: int) -> Transaction:
    transaction = _owned_transaction(db, user_id, transaction_id)
    if not transaction:
        raise NotFound(TRANSACTION_NOT_FOUND)
    return transaction


def create_transaction(db: Session, user_id: int, data: TransactionCreate) -> Transaction:
    _ensure_category_usable(db, user_id, data.category_id)

    transaction = Transaction(
        user_id=user_id,
        amount=data.amount,
        description=data.description,
        category_id=data.category_id,
        date=data.date,
        type=data.type,
    )
    db.add(transaction)
    db.commit()

    logger.info("transaction_created", user_id=user_id, transaction_id=transaction.id)
    return _owned_transaction(db, user_id, transaction.id)


def update_transaction(db: Session, user_id: int, transaction_id: int, data: TransactionUpdate) -> Transaction:
    transaction = _owned_transaction(db, user_id, transaction_id)
    if not transaction:
        raise NotFound(TRANSACTION_NOT_FOUND)

    _ensure_category_usable(db, user_id, data.category_id)

    transaction.amount = data.amount
    transaction.description = data.description
    transaction.category_id = data.category_id
    transaction.date = data.date
    transaction.type = data.type
    db.commit()

    logger.info("transaction_updated", user_id=user_id, transaction_id=transaction_id)
    return _owned_transaction(db, user_id, transaction_id)


def delete_transaction(db: Session, user_id: int, transaction_id: int) -> None:
    deleted = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    ).delete(synchronize_session=False)

    if not deleted:
        db.rollback()
        raise NotFound(TRANSACTION_NOT_FOUND)

    db.commit()
    logger.info("transaction_deleted", user_id=user_id, transaction_id=transaction_id)
