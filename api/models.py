"""
API request and response models for NeonThreads REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Wire format: product fields are camelCase on the wire (imageUrl, imageAlt)
via alias_generator; Python code uses snake_case. populate_by_name lets
clients send either spelling.

Password hashes never appear in any response model.
"""

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from auth.models import User
from catalog.models import Product

# ---------------------------------------------------------------------------
# Errors / health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class CreatedResponse(BaseModel):
    """Response for POST routes: the id the store assigned."""

    model_config = ConfigDict(frozen=True)

    id: int


# Usernames are trimmed. Passwords are never touched: bcrypt sees every byte.
Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    username: Username
    # bcrypt only looks at the first 72 bytes; cap well before abuse territory.
    password: str = Field(min_length=1, max_length=255)


class LoginResponse(BaseModel):
    """Response body for a successful POST /api/login.

    The same token is also set as the credential cookie. expires_in is 0 when
    tokens are configured without expiry.
    """

    model_config = ConfigDict(frozen=True)

    message: str = "login successful"
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: int
    username: str
    level: int


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/users. The password is hashed before storage."""

    username: Username
    password: str = Field(min_length=8, max_length=255)
    level: int = Field(default=2, ge=0)


class UserUpdate(BaseModel):
    """Request body for PUT /api/users. Omitted fields are left unchanged."""

    id: int
    username: Optional[Username] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=255)
    level: Optional[int] = Field(default=None, ge=0)


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    username: str
    level: int
    created_at: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, level=user.level, created_at=user.created_at or "")


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductIn(BaseModel):
    """Request body for POST /api/products."""

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    # Matches the Numeric(10, 2) column: finite, at most 2 places, below 10^8.
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    gender: str = Field(default="", max_length=20)
    color: str = Field(default="", max_length=50)
    small: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    large: int = Field(default=0, ge=0)
    image_url: str = Field(default="", max_length=2048)
    image_alt: str = Field(default="", max_length=255)

    def to_product(self, product_id: Optional[int] = None) -> Product:
        fields = self.model_dump(exclude={"id"})
        fields["price"] = float(self.price)
        return Product(id=product_id, **fields)


class ProductUpdate(ProductIn):
    """Request body for PUT /api/products: a full replacement keyed by id."""

    id: int


class ProductResponse(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    type: str
    title: str
    description: str
    price: float
    gender: str
    color: str
    small: int
    medium: int
    large: int
    image_url: str
    image_alt: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            type=product.type,
            title=product.title,
            description=product.description,
            price=product.price,
            gender=product.gender,
            color=product.color,
            small=product.small,
            medium=product.medium,
            large=product.large,
            image_url=product.image_url,
            image_alt=product.image_alt,
        )
