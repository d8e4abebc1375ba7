"""Read-only statistics over a user's transactions.

Grouping and summing are done by the database; this module only builds the
queries and shapes the rows.
"""
from typing import List

from sqlalchemy import case, func, literal_column
from sqlalchemy.orm import Session

from common.enum import TransactionTypeEnum
from models import Category, Transaction
from schemas import CategoryStat, MonthlyStat

MONTHLY_STATS_LIMIT = 12


def month_bucket(dialect_name: str, column=Transaction.date):
    """``YYYY-MM`` of a date column, spelled the way the dialect wants it."""
    if dialect_name == "postgresql":
        # inlined, so SELECT and GROUP BY render the same expression
        return func.to_char(column, literal_column("'YYYY-MM'"))
    if dialect_name in ("mysql", "mariadb"):
        return func.date_format(column, "%Y-%m")
    return func.strftime("%Y-%m", column)


def _sum_of(transaction_type: TransactionTypeEnum):
    return func.coalesce(
        func.sum(case((Transaction.type == transaction_type, Transaction.amount), else_=0)),
        0,
    )


def monthly_stats(db: Session, user_id: int, limit: int = MONTHLY_STATS_LIMIT) -> List[MonthlyStat]:
    """Income and expense totals per calendar month, most recent first.

    Only months that have transactions produce a row, so the result covers the
    latest ``limit`` months with data rather than a fixed calendar window.
    """
    month = month_bucket(db.get_bind().dialect.name)

    rows = (
        db.query(
            month.label("month"),
            _sum_of(TransactionTypeEnum.INCOME).label("total_income"),
            _sum_of(TransactionTypeEnum.EXPENSE).label("total_expenses"),
        )
        .filter(Transaction.user_id == user_id)
        .group_by(month)
        .order_by(month.desc())
        .limit(limit)
        .all()
    )

    return [
        MonthlyStat(
            month=row.month,
            total_income=round(float(row.total_income), 2),
            total_expenses=round(float(row.total_expenses), 2),
        )
        for row in rows
    ]


def category_stats(db: Session, user_id: int) -> List[CategoryStat]:
    """Total amount per category, largest first.

    Transactions whose category cannot be resolved are left out.
    """
    total = func.sum(Transaction.amount)

    rows = (
        db.query(Category.name, Category.type, total.label("total"))
        .select_from(Transaction)
        .join(Category, Transaction.category_id == Category.id)
        .filter(Transaction.user_id == user_id)
        .group_by(Category.id, Category.name, Category.type)
        .order_by(total.desc())
        .all()
    )

    return [
        CategoryStat(name=row.name, type=row.type, total=round(float(row.total), 2))
        for row in rows
    ]
