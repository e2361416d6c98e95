"""Diagnostic test schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import TEST_CATEGORIES, DiagnosticTest
from ...security_utils import sanitize_text


def _validate_category(v):
    if v is not None and v not in TEST_CATEGORIES:
        raise ValueError(f"Category must be one of: {', '.join(TEST_CATEGORIES)}")
    return v


class DiagnosticTestCreate(BaseModel):
    """Schema for creating a diagnostic test (admin)"""

    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    category: str
    price: float = Field(ge=0)
    duration: int = Field(ge=5, le=480)
    preparationInstructions: Optional[str] = Field(default=None, max_length=1000)
    normalRange: Optional[str] = Field(default=None, max_length=200)
    isAvailable: bool = True

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return _validate_category(v)

    @field_validator("description", "preparationInstructions")
    @classmethod
    def clean_text(cls, v):
        return sanitize_text(v)


class DiagnosticTestUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=5, le=480)
    preparationInstructions: Optional[str] = Field(default=None, max_length=1000)
    normalRange: Optional[str] = Field(default=None, max_length=200)
    isAvailable: Optional[bool] = None

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return _validate_category(v)

    @field_validator("description", "preparationInstructions")
    @classmethod
    def clean_text(cls, v):
        return sanitize_text(v)


class DiagnosticTestResponse(BaseModel):
    id: int
    name: str
    description: str
    category: str
    price: float
    duration: int
    preparationInstructions: Optional[str] = None
    normalRange: Optional[str] = None
    isAvailable: bool
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, test: DiagnosticTest) -> "DiagnosticTestResponse":
        return cls(
            id=test.id,
            name=test.name,
            description=test.description,
            category=test.category,
            price=test.price,
            duration=test.duration,
            preparationInstructions=test.preparation_instructions,
            normalRange=test.normal_range,
            isAvailable=test.is_available,
            createdAt=test.created_at,
            updatedAt=test.updated_at,
        )


class DiagnosticTestSummary(BaseModel):
    """Test details expanded into appointment views"""

    id: int
    name: str
    category: str
    price: float
    duration: int

    @classmethod
    def from_model(cls, test: Optional[DiagnosticTest]) -> Optional["DiagnosticTestSummary"]:
        if test is None:
            return None
        return cls(
            id=test.id,
            name=test.name,
            category=test.category,
            price=test.price,
            duration=test.duration,
        )
