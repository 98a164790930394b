"""Order data models. All amounts are integer Rappen (CHF cents)."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class PaymentMethod(str, Enum):
    STRIPE_CARD = "stripe_card"
    STRIPE_TWINT = "stripe_twint"
    CASH = "cash"
    TERMINAL = "terminal"
    VOUCHER = "voucher"
    PAY_AT_VENUE = "pay_at_venue"


class ShippingMethodType(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    PICKUP = "pickup"
    NONE = "none"


class OrderItemType(str, Enum):
    PRODUCT = "product"
    VOUCHER = "voucher"
    SERVICE = "service"


class OrderSource(str, Enum):
    ONLINE = "online"
    IN_PERSON = "in_person"
    PHONE = "phone"


class OrderItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    order_id: str
    item_type: OrderItemType
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    item_name: str
    item_sku: Optional[str] = None
    item_description: Optional[str] = None
    quantity: int
    unit_price_cents: int
    discount_cents: int = 0
    total_cents: int
    tax_rate: Decimal
    tax_cents: int
    voucher_id: Optional[str] = None
    voucher_type: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    personal_message: Optional[str] = None


class CreateOrderItemInput(BaseModel):
    item_type: OrderItemType
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    item_name: str = ""
    item_sku: Optional[str] = None
    item_description: Optional[str] = None
    quantity: int = 1
    unit_price_cents: int = 0
    discount_cents: int = 0
    tax_rate: Optional[Decimal] = None
    voucher_type: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    personal_message: Optional[str] = None


class ShippingAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    company: Optional[str] = None
    street: str = ""
    street2: Optional[str] = None
    zip: str = ""
    city: str = ""
    canton: Optional[str] = None
    country: str = "CH"
    phone: Optional[str] = None


class OrderStatusChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    previous_status: Optional[OrderStatus] = None
    new_status: OrderStatus
    changed_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    salon_id: str
    customer_id: Optional[str] = None
    order_number: str
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    subtotal_cents: int = 0
    discount_cents: int = 0
    shipping_cents: int = 0
    tax_cents: int = 0
    total_cents: int = 0
    voucher_id: Optional[str] = None
    voucher_discount_cents: int = 0
    shipping_method: Optional[ShippingMethodType] = None
    shipping_address: Optional[ShippingAddress] = None
    tracking_number: Optional[str] = None
    customer_email: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    refunded_amount_cents: int = 0
    source: OrderSource = OrderSource.ONLINE
    created_at: datetime
    updated_at: datetime
    paid_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    items: list[OrderItem] = Field(default_factory=list)
    status_history: list[OrderStatusChange] = Field(default_factory=list)


class CreateOrderInput(BaseModel):
    salon_id: str = ""
    customer_id: Optional[str] = None
    customer_email: str = ""
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_method: Optional[ShippingMethodType] = None
    shipping_address: Optional[ShippingAddress] = None
    customer_notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    source: OrderSource = OrderSource.ONLINE
    items: list[CreateOrderItemInput] = Field(default_factory=list)


class UpdateOrderInput(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking_number: Optional[str] = None
    internal_notes: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class ApplyVoucherInput(BaseModel):
    voucher_id: str
    voucher_code: str
    discount_cents: int = Field(ge=0)


class OrderTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal_cents: int
    discount_cents: int
    voucher_discount_cents: int
    shipping_cents: int
    tax_cents: int
    total_cents: int


class ShippingOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ShippingMethodType
    name: str
    description: str
    price_cents: int
    estimated_days: Optional[int] = None
    available: bool = True
