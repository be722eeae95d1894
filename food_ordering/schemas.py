"""
Pydantic Schemas for Request/Response Validation

Request bodies only check shape and formats. Business rules on carts
(existence, availability, quantities) are enforced by the order service so
that they are reported in a fixed order.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any
from datetime import datetime
import re

from food_ordering.models import OrderStatus


EMAIL_PATTERN = re.compile(r'^[\w\.\+-]+@[\w\.-]+\.\w+$')


def _check_phone(v: Optional[str]) -> Optional[str]:
    if v is None or v.strip() == "":
        return None
    cleaned = re.sub(r'[^\d]', '', v)
    if len(cleaned) < 10:
        raise ValueError('Phone number must have at least 10 digits')
    return v.strip()


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class RegisterRequest(BaseModel):
    """Request schema for creating an account."""
    name: str = Field(..., min_length=2, max_length=100, examples=["Jane Doe"])
    email: str = Field(..., max_length=255, examples=["jane@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=20, examples=["555-123-4567"])
    address: Optional[str] = Field(None, max_length=500)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if len(v.strip()) < 2:
            raise ValueError('Name must be at least 2 characters')
        return v.strip()

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email format')
        return v

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)


class LoginRequest(BaseModel):
    """Request schema for logging in."""
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public view of a user. The password hash is never exposed."""
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Response after registering or logging in."""
    message: str
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemResponse(BaseModel):
    """Response schema for a single menu item."""
    id: int
    name: str
    description: Optional[str] = None
    price: float
    category: str
    image_url: Optional[str] = None
    is_available: bool

    class Config:
        from_attributes = True


class MenuListResponse(BaseModel):
    menu_items: List[MenuItemResponse]
    total: int


class CategoriesResponse(BaseModel):
    categories: List[str]


# =============================================================================
# ORDER REQUEST SCHEMAS
# =============================================================================

class OrderItemCreate(BaseModel):
    """Single cart line. Quantity bounds are checked by the order service."""
    menu_item_id: int = Field(..., examples=[1])
    quantity: int = Field(..., examples=[2])


class OrderCreate(BaseModel):
    """Request schema for placing an order."""
    items: List[OrderItemCreate] = Field(..., examples=[[{"menu_item_id": 1, "quantity": 2}]])
    delivery_address: Optional[str] = Field(None, max_length=500, examples=["350 Fifth Avenue"])
    phone: Optional[str] = Field(None, max_length=20, examples=["555-123-4567"])
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator('delivery_address', 'notes')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() == "":
            return None
        return v.strip()

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)


class StatusUpdateRequest(BaseModel):
    """New status for an order. Checked against OrderStatus by the service."""
    status: str = Field(..., examples=["confirmed"])


# =============================================================================
# ORDER RESPONSE SCHEMAS
# =============================================================================

class OrderItemResponse(BaseModel):
    """One order line with its menu item details."""
    id: int
    menu_item_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int
    price: float
    total: float

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: int
    user_id: int
    status: OrderStatus
    total_amount: float
    delivery_address: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    item_count: int
    items: List[OrderItemResponse]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderCreateResponse(BaseModel):
    """Response after successfully creating an order."""
    success: bool
    message: str
    order: OrderResponse
    estimated_time: str


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    limit: Optional[int] = None
    offset: int = 0
    orders: List[OrderResponse]


class StatusUpdateResponse(BaseModel):
    success: bool
    message: str
    order: OrderResponse


# =============================================================================
# SHARED SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    fulfillment_service: str
    timestamp: datetime
