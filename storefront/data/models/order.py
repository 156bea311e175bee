from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, event
from sqlalchemy.orm import Session, relationship

from storefront.data.database import Base
from storefront.domain.pricing import compute_prices

PAYMENT_METHODS = ("Credit Card", "PayPal", "Stripe", "Cash on Delivery")
CASH_ON_DELIVERY = "Cash on Delivery"


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # shipping address
    address = Column(String, nullable=False)
    city = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)
    country = Column(String, nullable=False)

    payment_method = Column(String, nullable=False, default="Credit Card")

    # payment result, only set once the order is paid
    payment_transaction_id = Column(String, nullable=True)
    payment_status = Column(String, nullable=True)
    payment_update_time = Column(String, nullable=True)
    payer_email = Column(String, nullable=True)

    items_price = Column(Numeric(10, 2), nullable=False, default=0)
    tax_price = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)

    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    is_shipped = Column(Boolean, nullable=False, default=False)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    is_delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    is_cancelled = Column(Boolean, nullable=False, default=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    is_refunded = Column(Boolean, nullable=False, default=False)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=True)

    cancellable_until = Column(DateTime(timezone=True), nullable=False)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
        lazy="selectin",
    )

    # optimistic locking: UPDATE ... WHERE version = :old, StaleDataError on 0 rows
    __mapper_args__ = {"version_id_col": version}

    def recalculate_prices(self):
        prices = compute_prices((i.price, i.quantity) for i in self.items)
        self.items_price = prices.items_price
        self.tax_price = prices.tax_price
        self.shipping_price = prices.shipping_price
        self.total_price = prices.total_price


@event.listens_for(Session, "before_flush")
def _recalculate_order_prices(session, flush_context, instances):
    """Money fields always follow the persisted line items."""
    for obj in list(session.new) + list(session.dirty):
        if isinstance(obj, OrderModel):
            obj.recalculate_prices()
