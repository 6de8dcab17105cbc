"""
schemas.py — PlanMyStay Pydantic v2 data contracts.

Defines:
  - RegisterForm, LoginForm                     (users routes)
  - ListingForm, ListingUpdateForm              (listings routes)
  - ReviewForm, ReviewUpdateForm                (reviews routes)
  - PricePredictionRequest, PricePrediction     (POST /api/predict-price)
  - ErrorDetail, ErrorBody, ErrorResponse       (cross-cutting error envelope)

HTML forms arrive as flat string maps; empty strings are treated as "not
provided" so optional update fields can be left blank.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class RegisterForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=6, max_length=64)


class LoginForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=64)


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class ListingForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(min_length=1, max_length=120)
    description: str = Field(default="", max_length=5000)
    image_url: Optional[str] = Field(default=None, max_length=500)
    price: int = Field(ge=0, le=1_000_000)
    location: str = Field(min_length=1, max_length=120)
    country: str = Field(min_length=1, max_length=80)

    @field_validator("image_url", mode="before")
    @classmethod
    def _blank_image(cls, value):
        return _blank_to_none(value)


class ListingUpdateForm(BaseModel):
    """Partial update — only supplied, non-blank fields are applied."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=5000)
    image_url: Optional[str] = Field(default=None, max_length=500)
    price: Optional[int] = Field(default=None, ge=0, le=1_000_000)
    location: Optional[str] = Field(default=None, min_length=1, max_length=120)
    country: Optional[str] = Field(default=None, min_length=1, max_length=80)

    @field_validator("title", "image_url", "price", "location", "country", mode="before")
    @classmethod
    def _blanks(cls, value):
        return _blank_to_none(value)


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

class ReviewForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)


class ReviewUpdateForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, min_length=1, max_length=2000)

    @field_validator("rating", "comment", mode="before")
    @classmethod
    def _blanks(cls, value):
        return _blank_to_none(value)


# ---------------------------------------------------------------------------
# Price prediction
# ---------------------------------------------------------------------------

class PricePredictionRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    location: Optional[str] = Field(default=None, max_length=120)
    country: Optional[str] = Field(default=None, max_length=80)
    guests: int = Field(default=2, ge=1, le=20)
    bedrooms: int = Field(default=1, ge=0, le=20)
    amenities: List[str] = Field(default_factory=list, max_length=50)


class PricePrediction(BaseModel):
    predicted_price: int
    low: int
    high: int
    comparables: int
    confidence: Literal["low", "medium", "high"]
    basis: str


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    field: Optional[str] = None
    issue: str


class ErrorBody(BaseModel):
    code: str
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: ErrorBody


def first_error_message(exc) -> str:
    """Human-readable summary of a pydantic ValidationError for flash banners."""
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    err = errors[0]
    field = ".".join(str(loc) for loc in err["loc"])
    return f"{field}: {err['msg']}" if field else err["msg"]
