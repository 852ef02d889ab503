import json
from datetime import datetime
from typing import Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import FEATURE_FLAGS, default_features

T = TypeVar("T")

MAX_LIMIT = 100

FuelType = Literal["Gasoline", "Diesel", "Electric", "Hybrid", "CNG", "LPG", "Other"]
MileageUnit = Literal["km/l", "mpg", "l/100km"]
CategoryType = Literal["product", "truck"]
ContactStatus = Literal["new", "read", "responded"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


def drop_blank(data):
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if not (isinstance(v, str) and v.strip() == "")}
    return data


def normalize_features(value):
    """Accept a JSON string or a mapping; unknown keys are dropped, missing ones are False."""
    if value is None:
        return default_features()
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValueError("Invalid features format")
    if not isinstance(value, dict):
        raise ValueError("Invalid features format")
    features = default_features()
    for name in FEATURE_FLAGS:
        if name in value:
            features[name] = bool(value[name])
    return features


# ------------
# Output shapes
# ------------

class RefOut(CamelModel):
    id: str
    name: str


class ProductOut(CamelModel):
    id: str
    title: str
    model: str
    year: int
    unit_price: float
    discount_percentage: float
    discounted_price: float
    quantity: int
    weight: float
    description: str
    fuel_type: Optional[str]
    mileage: Optional[float]
    mileage_unit: str
    chassis: str
    color: str
    axle_configuration: str
    vehicle_grade: str
    tag: Optional[str]
    features: Dict[str, bool]
    thumbnail: str
    images: List[str]
    category: Optional[RefOut]
    make: Optional[RefOut]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class BrandOut(CamelModel):
    id: str
    name: str
    thumbnail: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class CategoryOut(CamelModel):
    id: str
    name: str
    type: str
    thumbnail: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class BlogOut(CamelModel):
    id: str
    title: str
    description: str
    content: str
    thumbnail: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class FaqOut(CamelModel):
    id: str
    question: str
    answer: str
    is_active: bool
    order: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class HeroSlideOut(CamelModel):
    id: str
    media_url: str
    media_type: str
    position: int
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class ContactOut(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str]
    message: str
    status: str
    created_at: Optional[datetime]


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Page(CamelModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination


class Envelope(CamelModel, Generic[T]):
    success: bool = True
    data: T


class Saved(CamelModel, Generic[T]):
    success: bool = True
    message: str
    data: T


class Message(CamelModel):
    success: bool = True
    message: str


class TokenOut(CamelModel):
    success: bool = True
    message: str
    token: str


# -----------
# Query shapes
# -----------

class ListParams(CamelModel):
    page: int = Field(1, ge=1)
    limit: Optional[int] = Field(None, ge=1)
    sort_by: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "desc"

    @model_validator(mode="before")
    @classmethod
    def _strip_blank(cls, data):
        return drop_blank(data)

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, v):
        if v is not None and v > MAX_LIMIT:
            return MAX_LIMIT
        return v


class ProductFilters(ListParams):
    category: Optional[str] = None
    brand: Optional[str] = None
    category_type: Optional[CategoryType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    year: Optional[int] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    min_weight: Optional[float] = None
    max_weight: Optional[float] = None
    min_mileage: Optional[float] = None
    max_mileage: Optional[float] = None
    fuel_type: Optional[str] = None
    axle_configuration: Optional[str] = None
    vehicle_grade: Optional[str] = None
    tag: Optional[str] = None
    chassis: Optional[str] = None
    color: Optional[str] = None
    model: Optional[str] = None
    search: Optional[str] = None


# ----------
# Input shapes
# ----------

class ProductCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    model: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=2100)
    unit_price: float = Field(..., ge=0)
    discount_percentage: float = Field(0, ge=0, le=100)
    quantity: int = Field(0, ge=0)
    weight: float = Field(..., ge=0)
    description: str = ""
    fuel_type: Optional[FuelType] = None
    mileage: Optional[float] = Field(None, ge=0)
    mileage_unit: MileageUnit = "km/l"
    chassis: str = ""
    color: str = ""
    axle_configuration: str = ""
    vehicle_grade: str = ""
    tag: Optional[Literal["Trucks"]] = None
    features: Dict[str, bool] = Field(default_factory=default_features)
    category: str = Field(..., min_length=1)
    make: str = Field(..., min_length=1)

    @field_validator("features", mode="before")
    @classmethod
    def _features(cls, v):
        return normalize_features(v)


class ProductUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    model: Optional[str] = Field(None, min_length=1)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    unit_price: Optional[float] = Field(None, ge=0)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    quantity: Optional[int] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    fuel_type: Optional[FuelType] = None
    mileage: Optional[float] = Field(None, ge=0)
    mileage_unit: Optional[MileageUnit] = None
    chassis: Optional[str] = None
    color: Optional[str] = None
    axle_configuration: Optional[str] = None
    vehicle_grade: Optional[str] = None
    tag: Optional[Literal["Trucks"]] = None
    features: Optional[Dict[str, bool]] = None
    category: Optional[str] = Field(None, min_length=1)
    make: Optional[str] = Field(None, min_length=1)

    @field_validator("features", mode="before")
    @classmethod
    def _features(cls, v):
        return normalize_features(v)


class BrandIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)


class CategoryIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    type: CategoryType = "product"


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    type: Optional[CategoryType] = None


class BlogIn(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class FaqIn(CamelModel):
    question: str = Field(..., min_length=1, max_length=500)
    answer: str = Field(..., min_length=1, max_length=2000)
    is_active: bool = True
    order: int = 0


class FaqUpdate(CamelModel):
    question: str = Field(..., min_length=1, max_length=500)
    answer: str = Field(..., min_length=1, max_length=2000)
    is_active: Optional[bool] = None
    order: Optional[int] = None


class HeroIn(CamelModel):
    position: int = 0
    is_active: bool = True


class HeroUpdate(CamelModel):
    position: Optional[int] = None
    is_active: Optional[bool] = None


class SwapIn(CamelModel):
    first_id: str
    second_id: str


class MoveIn(CamelModel):
    direction: Literal["up", "down"]


class ContactIn(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    message: str = Field(..., min_length=1)


class ContactStatusIn(CamelModel):
    status: ContactStatus


class LoginIn(CamelModel):
    username: str
    password: str


class AdminUserIn(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8)
    role: Literal["admin"] = "admin"


class PasswordChangeIn(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class MigrateIn(CamelModel):
    limit: int = Field(10, ge=1, le=500)


def page_of(schema, page):
    return {
        "success": True,
        "data": [schema.model_validate(obj) for obj in page["items"]],
        "pagination": page["pagination"],
    }
