"""Pydantic models for Expense data"""
import math
from pydantic import BaseModel, Field, StrictInt, field_validator
from typing import List, Union

class Expense(BaseModel):
    """
    Represents a single recorded expense.
    """
    id: int
    amount: Union[StrictInt, float] # Integers are echoed back unchanged
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1) # Caller supplied, format not checked
    created_at: str = Field(..., alias="createdAt")

    @field_validator('amount')
    @classmethod
    def amount_must_be_positive(cls, value):
        if value <= 0 or not math.isfinite(value):
            raise ValueError("amount must be a positive, finite number")
        return value

    class Config:
        populate_by_name = True
        from_attributes = True
        frozen = True

class ExpenseListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[Expense]

class ExpenseResponse(BaseModel):
    success: bool = True
    data: Expense

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
