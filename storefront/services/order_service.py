# storefront/services/order_service.py
import uuid
from datetime import timedelta
from typing import Any, Callable, Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel, PAYMENT_METHODS, CASH_ON_DELIVERY
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    AlreadyCancelled,
    AlreadyDelivered,
    AlreadyPaid,
    AlreadyRefunded,
    AlreadyShipped,
    CancelWindowExpired,
    EmptyOrder,
    IncompleteAddress,
    InsufficientStock,
    InvalidLineItem,
    InvalidPaymentMethod,
    InvalidQuantity,
    NotCancelled,
    NotFound,
    NotPaid,
    NotYetShipped,
    OrderCancelled,
    OrderError,
    ProductNotFound,
    ShippedOrDelivered,
    TransactionFailed,
    Unauthorized,
)
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.notification_service import NotificationService
from storefront.utils.clock import as_utc, utcnow
from storefront.utils.retry import db_retry
from storefront.utils.settings import CANCEL_WINDOW_HOURS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ADDRESS_FIELDS = ("address", "city", "postal_code", "country")


class OrderService:
    """
    Order lifecycle: creation, payment, shipment, delivery, cancellation,
    refund and administrative purge.

    Every command runs as one unit of work. Stock changes and the order row
    are committed together or rolled back together; transient database
    failures and lost optimistic-lock races are retried, anything else that
    comes out of the database surfaces as TransactionFailed.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        clock: Callable = utcnow,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)
        self.notification_service = notification_service or NotificationService()
        self.clock = clock

    # =====================================================
    # QUERIES
    # =====================================================
    def get_order(self, order_id: int, requester_id: int, requester_is_admin: bool) -> Dict[str, Any]:
        order = self._load(order_id)
        self._require_owner_or_admin(order, requester_id, requester_is_admin)
        return self._to_dict(order)

    def list_own_orders(self, owner_id: int) -> List[Dict[str, Any]]:
        return [self._to_dict(o) for o in self.repo.list_orders(user_id=owner_id)]

    def list_all_orders(self, requester_is_admin: bool) -> List[Dict[str, Any]]:
        if not requester_is_admin:
            raise Unauthorized("Not authorized as admin")
        return [self._to_dict(o) for o in self.repo.list_orders()]

    def has_purchased(self, user_id: int, product_id: int) -> bool:
        return self.repo.has_paid_order_with_product(user_id, product_id)

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(
        self,
        owner_id: int,
        line_items: Iterable[Dict[str, Any]],
        shipping_address: Dict[str, Any],
        payment_method: str,
    ) -> Dict[str, Any]:
        """
        Use Case: place an order.

        1. Validates items, address and payment method
        2. Checks availability of every product before touching stock
        3. Decrements stock with conditional updates
        4. Inserts the order with snapshotted line items
        All of 2-4 commit together; any failure leaves stock untouched.
        """
        lines = [self._parse_line(raw, position) for position, raw in enumerate(line_items or [], start=1)]
        if not lines:
            raise EmptyOrder()

        for line in lines:
            if line["quantity"] < 1:
                raise InvalidQuantity(line["product_id"], line["quantity"])

        address = {f: str((shipping_address or {}).get(f) or "").strip() for f in ADDRESS_FIELDS}
        missing = [f for f in ADDRESS_FIELDS if not address[f]]
        if missing:
            raise IncompleteAddress(missing)

        if payment_method not in PAYMENT_METHODS:
            raise InvalidPaymentMethod(payment_method)

        owner = self.users.get_user(owner_id)
        if owner is None:
            raise Unauthorized("Unknown user")

        order = self._run("create", lambda: self._place(owner, lines, address, payment_method))

        logger.info(f"Order {order.id} created for user {owner_id}, total {order.total_price}")

        data = self._to_dict(order)
        self.notification_service.order_created(data)
        return data

    def mark_paid(
        self,
        order_id: int,
        requester_id: int,
        requester_is_admin: bool,
        payment_details: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        def work():
            order = self._load(order_id)
            self._require_owner_or_admin(order, requester_id, requester_is_admin)
            if order.is_paid:
                raise AlreadyPaid()
            if order.is_cancelled:
                raise OrderCancelled()
            owner = self.users.get_user(order.user_id)
            self._apply_payment(order, payment_details or {}, owner.email if owner else None)
            return order

        order = self._run("pay", work)
        logger.info(f"Order {order_id} marked paid by user {requester_id}")
        return self._to_dict(order)

    def mark_shipped(self, order_id: int, requester_is_admin: bool) -> Dict[str, Any]:
        def work():
            order = self._load(order_id)
            if not requester_is_admin:
                raise Unauthorized("Only admins can ship orders")
            if order.is_shipped:
                raise AlreadyShipped()
            if order.is_cancelled:
                raise OrderCancelled()
            order.is_shipped = True
            order.shipped_at = self.clock()
            return order

        order = self._run("ship", work)
        logger.info(f"Order {order_id} shipped")

        data = self._to_dict(order)
        self.notification_service.order_status_changed(data, "shipped")
        return data

    def mark_delivered(self, order_id: int, requester_id: int) -> Dict[str, Any]:
        def work():
            order = self._load(order_id)
            if order.user_id != requester_id:
                raise Unauthorized("Only the customer can confirm delivery")
            if not order.is_shipped:
                raise NotYetShipped()
            if order.is_delivered:
                raise AlreadyDelivered()
            order.is_delivered = True
            order.delivered_at = self.clock()
            return order

        order = self._run("deliver", work)
        logger.info(f"Order {order_id} delivered to user {requester_id}")
        return self._to_dict(order)

    def cancel(self, order_id: int, requester_id: int, requester_is_admin: bool) -> Dict[str, Any]:
        def work():
            order = self._load(order_id)
            self._require_owner_or_admin(order, requester_id, requester_is_admin)
            if order.is_cancelled:
                raise AlreadyCancelled()
            if order.is_shipped or order.is_delivered:
                raise ShippedOrDelivered()

            now = self.clock()
            if order.is_paid and not requester_is_admin:
                if now - as_utc(order.paid_at) > timedelta(hours=CANCEL_WINDOW_HOURS):
                    raise CancelWindowExpired(CANCEL_WINDOW_HOURS)

            order.is_cancelled = True
            order.cancelled_at = now
            self._restore_stock(order)
            return order

        order = self._run("cancel", work)
        logger.info(f"Order {order_id} cancelled by user {requester_id}, stock restored")

        data = self._to_dict(order)
        self.notification_service.order_status_changed(data, "cancelled")
        return data

    def refund(self, order_id: int, requester_is_admin: bool) -> Dict[str, Any]:
        def work():
            order = self._load(order_id)
            if not requester_is_admin:
                raise Unauthorized("Only admins can refund orders")
            if not order.is_cancelled:
                raise NotCancelled()
            if not order.is_paid:
                raise NotPaid()
            if order.is_refunded:
                raise AlreadyRefunded()
            order.is_refunded = True
            order.refunded_at = self.clock()
            order.refund_amount = order.total_price
            return order

        order = self._run("refund", work)
        logger.info(f"Order {order_id} refunded, amount {order.refund_amount}")

        data = self._to_dict(order)
        self.notification_service.order_status_changed(data, "refunded")
        return data

    def delete_order(self, order_id: int, requester_is_admin: bool) -> None:
        def work():
            order = self._load(order_id)
            if not requester_is_admin:
                raise Unauthorized("Only admins can delete orders")
            if order.is_shipped or order.is_delivered:
                raise ShippedOrDelivered()
            if not order.is_cancelled:
                self._restore_stock(order)
            self.repo.delete_order(order)

        self._run("delete", work)
        logger.info(f"Order {order_id} deleted")

    # =====================================================
    # HELPERS
    # =====================================================
    def _run(self, operation: str, work: Callable):
        try:
            return self._in_transaction(work)
        except OrderError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Order {operation} rolled back: {e}")
            raise TransactionFailed(operation, e) from e

    @db_retry()
    def _in_transaction(self, work: Callable):
        try:
            result = work()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return result

    def _load(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(order_id)
        return order

    @staticmethod
    def _require_owner_or_admin(order: OrderModel, requester_id: int, requester_is_admin: bool):
        if order.user_id != requester_id and not requester_is_admin:
            raise Unauthorized()

    def _place(self, owner, lines, address, payment_method) -> OrderModel:
        # same product on several lines counts once against stock
        requested: Dict[int, int] = {}
        for line in lines:
            requested[line["product_id"]] = requested.get(line["product_id"], 0) + line["quantity"]

        products = self.products.find_many(requested)

        # availability of every item is known before any write
        for product_id, qty in requested.items():
            product = products.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if product.count_in_stock < qty:
                logger.warning(
                    f"Stock check failed for product {product_id}: "
                    f"available {product.count_in_stock}, requested {qty}"
                )
                raise InsufficientStock(product_id, product.name, product.count_in_stock, qty)

        # ascending id order keeps row locks acquired in a stable order
        for product_id in sorted(requested):
            qty = requested[product_id]
            if not self.products.decrement_stock(product_id, qty):
                product = products[product_id]
                self.db.refresh(product)
                logger.warning(f"Product {product_id} sold out concurrently, rolling back order")
                raise InsufficientStock(product_id, product.name, product.count_in_stock, qty)

        now = self.clock()
        order = OrderModel(
            user_id=owner.id,
            payment_method=payment_method,
            cancellable_until=now + timedelta(hours=CANCEL_WINDOW_HOURS),
            created_at=now,
            **address,
        )
        order.items = [
            OrderItemModel(
                product_id=line["product_id"],
                name=products[line["product_id"]].name,
                image=products[line["product_id"]].image,
                price=products[line["product_id"]].price,
                quantity=line["quantity"],
            )
            for line in lines
        ]

        if payment_method != CASH_ON_DELIVERY:
            self._apply_payment(order, {}, owner.email)

        return self.repo.add_order(order)

    @staticmethod
    def _parse_line(raw, position: int) -> Dict[str, int]:
        try:
            product_id = int(raw["product_id"])
            quantity = int(raw["quantity"])
        except (KeyError, TypeError, ValueError):
            raise InvalidLineItem(position) from None
        return {"product_id": product_id, "quantity": quantity}

    def _apply_payment(self, order: OrderModel, details: Dict[str, Any], fallback_email: str | None):
        now = self.clock()
        order.is_paid = True
        order.paid_at = now
        order.payment_transaction_id = details.get("transaction_id") or str(uuid.uuid4())
        order.payment_status = details.get("status") or "COMPLETED"
        order.payment_update_time = details.get("update_time") or now.isoformat()
        order.payer_email = details.get("email_address") or fallback_email

    def _restore_stock(self, order: OrderModel):
        for item in order.items:
            if not self.products.increment_stock(item.product_id, item.quantity):
                # all or nothing: the caller rolls back every increment already applied
                logger.error(
                    f"Order {order.id}: product {item.product_id} no longer exists, "
                    f"cannot restore {item.quantity} unit(s)"
                )
                raise ProductNotFound(item.product_id)

    @staticmethod
    def _to_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "order_items": [
                {
                    "product_id": i.product_id,
                    "name": i.name,
                    "image": i.image,
                    "price": i.price,
                    "quantity": i.quantity,
                }
                for i in order.items
            ],
            "shipping_address": {f: getattr(order, f) for f in ADDRESS_FIELDS},
            "payment_method": order.payment_method,
            "payment_result": (
                {
                    "transaction_id": order.payment_transaction_id,
                    "status": order.payment_status,
                    "update_time": order.payment_update_time,
                    "email_address": order.payer_email,
                }
                if order.is_paid
                else None
            ),
            "items_price": order.items_price,
            "tax_price": order.tax_price,
            "shipping_price": order.shipping_price,
            "total_price": order.total_price,
            "is_paid": order.is_paid,
            "paid_at": as_utc(order.paid_at),
            "is_shipped": order.is_shipped,
            "shipped_at": as_utc(order.shipped_at),
            "is_delivered": order.is_delivered,
            "delivered_at": as_utc(order.delivered_at),
            "is_cancelled": order.is_cancelled,
            "cancelled_at": as_utc(order.cancelled_at),
            "is_refunded": order.is_refunded,
            "refunded_at": as_utc(order.refunded_at),
            "refund_amount": order.refund_amount,
            "cancellable_until": as_utc(order.cancellable_until),
            "created_at": as_utc(order.created_at),
            "updated_at": as_utc(order.updated_at),
        }
