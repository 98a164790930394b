"""Cart data models. All amounts are integer Rappen (CHF cents)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CartItemType(str, Enum):
    PRODUCT = "product"
    VOUCHER = "voucher"
    SERVICE = "service"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    VOUCHER = "voucher"


class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: CartItemType
    product_id: Optional[str] = None
    voucher_id: Optional[str] = None
    service_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int
    unit_price_cents: int = Field(ge=0)
    total_price_cents: int
    # Vouchers
    voucher_value: Optional[int] = None
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    personal_message: Optional[str] = None
    # Products
    variant: Optional[str] = None
    sku: Optional[str] = None


class CartDiscount(BaseModel):
    """Applied discount code. ``value`` is a percentage (0-100) or Rappen."""

    model_config = ConfigDict(frozen=True)

    code: str
    type: DiscountType
    value: int = Field(ge=0)
    amount_cents: int = Field(default=0, ge=0)
    description: str = ""


class ShippingMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    price_cents: int = Field(ge=0)
    estimated_days: str = ""
    is_default: bool = False


class CartTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal_cents: int = 0
    discount_cents: int = 0
    shipping_cents: int = 0
    tax_cents: int = 0
    total_cents: int = 0
    item_count: int = 0


class Cart(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    items: list[CartItem] = Field(default_factory=list)
    discounts: list[CartDiscount] = Field(default_factory=list)
    shipping_method: Optional[ShippingMethod] = None
    totals: CartTotals = Field(default_factory=CartTotals)
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None


class AddToCartInput(BaseModel):
    type: CartItemType
    product_id: Optional[str] = None
    voucher_id: Optional[str] = None
    service_id: Optional[str] = None
    quantity: int = 1
    variant: Optional[str] = None
    voucher_value: Optional[int] = None
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    personal_message: Optional[str] = None


class UpdateCartItemInput(BaseModel):
    item_id: str
    quantity: Optional[int] = None
    variant: Optional[str] = None


class ProductData(BaseModel):
    """Catalog data the caller looks up for the item being added."""

    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    price_cents: int = Field(ge=0)
    sku: Optional[str] = None
