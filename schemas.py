import datetime as dt
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, TypeAdapter, ValidationError, field_validator

from common.enum import TransactionTypeEnum


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


RequiredText = Annotated[str, AfterValidator(_strip_required)]

_timestamp_adapter = TypeAdapter(dt.datetime)


def _round_money(value: float) -> float:
    return round(value, 2)


# Stored with two decimal places, so round before it reaches the ledger
Money = Annotated[float, Field(allow_inf_nan=False), AfterValidator(_round_money)]


# Auth Schemas
class UserRegister(BaseModel):
    name: RequiredText = Field(..., max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserResponse(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class Token(BaseModel):
    token: str
    user: UserResponse


# Category Schemas
class CategoryCreate(BaseModel):
    name: RequiredText = Field(..., max_length=100)
    type: TransactionTypeEnum


class CategoryUpdate(CategoryCreate):
    pass


class CategoryResponse(BaseModel):
    id: int
    name: str
    type: TransactionTypeEnum
    user_id: Optional[int]

    class Config:
        from_attributes = True


# Transaction Schemas
class TransactionCreate(BaseModel):
    amount: Money
    description: RequiredText = Field(..., max_length=255)
    category_id: int
    date: dt.date
    type: TransactionTypeEnum

    @field_validator("amount", "category_id", mode="before")
    @classmethod
    def reject_booleans(cls, value):
        if isinstance(value, bool):
            raise ValueError("must be a number")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def date_from_timestamp(cls, value):
        """Accept a full ISO-8601 timestamp and keep its calendar date."""
        if isinstance(value, str) and len(value) > 10:
            try:
                return _timestamp_adapter.validate_python(value).date()
            except ValidationError:
                return value
        return value


class TransactionUpdate(TransactionCreate):
    pass


class TransactionFilter(BaseModel):
    type: Optional[TransactionTypeEnum] = None
    category_id: Optional[int] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    amount: float
    description: str
    category_id: Optional[int]
    date: dt.date
    type: TransactionTypeEnum
    category_name: Optional[str] = None
    category_type: Optional[TransactionTypeEnum] = None

    class Config:
        from_attributes = True


# Statistics Schemas
class MonthlyStat(BaseModel):
    month: str
    total_income: float
    total_expenses: float


class CategoryStat(BaseModel):
    name: str
    type: TransactionTypeEnum
    total: float


class StatsResponse(BaseModel):
    monthly: List[MonthlyStat]
    by_category: List[CategoryStat] = Field(..., alias="byCategory")


# Misc
class MessageResponse(BaseModel):
    message: str


class StatusResponse(BaseModel):
    status: str
    timestamp: dt.datetime
