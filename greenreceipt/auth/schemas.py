"""Authentication request/response schemas."""

from typing import Any, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from greenreceipt.schemas import CamelModel, MessageResponse

CUSTOMER = "customer"
MERCHANT = "merchant"
Role = Literal["customer", "merchant"]

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DEFAULT_RECEIPT_FOOTER = "Thank you! Visit again."
DEFAULT_BRAND_COLOR = "#10b981"
DEFAULT_CURRENCY = "INR"


def _normalize_email(value: str) -> str:
    return value.strip().lower()


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# =============================================================================
# Embedded documents
# =============================================================================


class CustomerAddress(CamelModel):
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class MerchantAddress(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str = "India"


class OperatingHours(CamelModel):
    day: Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    is_open: bool = True
    open_time: str = Field(default="09:00", pattern=r"^\d{2}:\d{2}$")
    close_time: str = Field(default="21:00", pattern=r"^\d{2}:\d{2}$")


def default_operating_hours() -> list[dict]:
    """Seven days, 09:00-21:00, closed on Sunday."""
    return [
        OperatingHours(day=day, is_open=day != "sunday").to_document()
        for day in WEEKDAYS
    ]


# =============================================================================
# Request Models
# =============================================================================


class _SignupBase(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    confirm_password: Optional[str] = Field(default=None, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class CustomerSignupRequest(_SignupBase):
    """Customer account creation."""

    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class MerchantSignupRequest(_SignupBase):
    """Merchant account creation."""

    shop_name: str = Field(..., min_length=1, max_length=200)

    @field_validator("shop_name")
    @classmethod
    def strip_shop_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Shop name is required")
        return v


class LoginRequest(CamelModel):
    """Login for either portal; ``role`` names the portal used."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
    role: Role = CUSTOMER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshTokenRequest(CamelModel):
    """Body fallback for clients that cannot send the refresh cookie."""

    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class CustomerProfileUpdate(CamelModel):
    """Editable customer fields. Blank strings count as not provided."""

    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[CustomerAddress] = None

    @field_validator("name", "phone", "email", mode="before")
    @classmethod
    def drop_blank(cls, v: Any) -> Any:
        return _blank_to_none(v)


class MerchantProfileUpdate(CamelModel):
    """Editable merchant fields. Blank strings count as not provided."""

    shop_name: Optional[str] = Field(default=None, max_length=200)
    owner_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[MerchantAddress] = None
    address_line: Optional[str] = Field(default=None, max_length=300)
    business_category: Optional[str] = Field(default=None, max_length=100)
    business_description: Optional[str] = Field(default=None, max_length=500)
    operating_hours: Optional[list[OperatingHours]] = Field(default=None, max_length=7)
    receipt_header: Optional[str] = Field(default=None, max_length=200)
    receipt_footer: Optional[str] = Field(default=None, max_length=200)
    brand_color: Optional[str] = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")
    logo_url: Optional[str] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    @field_validator(
        "shop_name",
        "owner_name",
        "email",
        "phone",
        "address_line",
        "business_category",
        "business_description",
        "receipt_header",
        "receipt_footer",
        "brand_color",
        "logo_url",
        "currency",
        mode="before",
    )
    @classmethod
    def drop_blank(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


# =============================================================================
# Response Models
# =============================================================================


class TokenResponse(CamelModel):
    """Returned by signup and login; the refresh token travels as a cookie."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires
    refresh_expires_in: int
    role: Role
    user: dict[str, Any]


class RefreshResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_expires_in: int
    role: Role


class SessionResponse(CamelModel):
    valid: bool
    role: Role
    user: dict[str, Any]


__all__ = [
    "CUSTOMER",
    "MERCHANT",
    "Role",
    "DEFAULT_RECEIPT_FOOTER",
    "DEFAULT_BRAND_COLOR",
    "DEFAULT_CURRENCY",
    "CustomerAddress",
    "MerchantAddress",
    "OperatingHours",
    "default_operating_hours",
    "CustomerSignupRequest",
    "MerchantSignupRequest",
    "LoginRequest",
    "RefreshTokenRequest",
    "ChangePasswordRequest",
    "CustomerProfileUpdate",
    "MerchantProfileUpdate",
    "TokenResponse",
    "RefreshResponse",
    "SessionResponse",
    "MessageResponse",
]
