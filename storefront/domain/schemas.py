# storefront/domain/schemas.py
from pydantic import AliasChoices, BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List
from decimal import Decimal
from datetime import datetime


class CamelModel(BaseModel):
    """Wire format is camelCase (itemsPrice, isPaid, ...), snake_case is accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserCreate(BaseModel):
    """Schema for creating a user."""

    id: int = Field(..., gt=0, description="User id (must be > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: str = Field("", max_length=255)
    is_admin: bool = False


class UserRead(BaseModel):
    """Schema for a user (response)."""

    id: int
    name: str
    email: str
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


class OrderItemIn(CamelModel):
    """
    One requested line. Only product and quantity are used; name, price and
    image are taken from the catalog when the order is placed.
    """

    product_id: int = Field(..., validation_alias=AliasChoices("productId", "product_id", "product"))
    quantity: int = Field(..., validation_alias=AliasChoices("quantity", "qty"))
    name: str | None = None
    price: Decimal | None = None
    image: str | None = None


class ShippingAddress(CamelModel):
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""


class OrderCreate(CamelModel):
    """Schema for placing an order. Client-side totals are ignored."""

    order_items: List[OrderItemIn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("orderItems", "order_items", "items"),
    )
    shipping_address: ShippingAddress = Field(default_factory=ShippingAddress)
    payment_method: str = "Credit Card"

    items_price: Decimal | None = None
    tax_price: Decimal | None = None
    shipping_price: Decimal | None = None
    total_price: Decimal | None = None


class PaymentDetailsIn(CamelModel):
    transaction_id: str | None = Field(None, validation_alias=AliasChoices("id", "transactionId", "transaction_id"))
    status: str | None = None
    update_time: str | None = Field(None, validation_alias=AliasChoices("update_time", "updateTime"))
    email_address: str | None = Field(
        None,
        validation_alias=AliasChoices("email_address", "emailAddress", "payerEmail"),
    )


class OrderItemOut(CamelModel):
    product_id: int
    name: str
    image: str
    price: Decimal
    quantity: int


class PaymentResultOut(CamelModel):
    transaction_id: str | None = None
    status: str | None = None
    update_time: str | None = None
    email_address: str | None = None


class OrderOut(CamelModel):
    """Schema for an order (response)."""

    id: int
    user_id: int
    order_items: List[OrderItemOut]
    shipping_address: ShippingAddress
    payment_method: str
    payment_result: PaymentResultOut | None = None

    items_price: Decimal
    tax_price: Decimal
    shipping_price: Decimal
    total_price: Decimal

    is_paid: bool
    paid_at: datetime | None = None
    is_shipped: bool
    shipped_at: datetime | None = None
    is_delivered: bool
    delivered_at: datetime | None = None
    is_cancelled: bool
    cancelled_at: datetime | None = None
    is_refunded: bool
    refunded_at: datetime | None = None
    refund_amount: Decimal | None = None

    cancellable_until: datetime
    created_at: datetime
    updated_at: datetime


class PurchaseCheckOut(CamelModel):
    product_id: int
    has_purchased: bool
