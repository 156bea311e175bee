# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Customer notifications for order events.
    Work is handed to Celery so the request never waits on delivery.

    Called after the order change is committed: a broker outage is logged
    and must not turn a committed change into a failed request.
    """

    @staticmethod
    def _enqueue(task, *args):
        try:
            task.delay(*args)
        except Exception:
            logger.exception(f"Could not enqueue {task.name} for order {args[1]}")

    @classmethod
    def order_created(cls, order: dict):
        address = order["shipping_address"]
        cls._enqueue(
            send_order_confirmation_task,
            order["user_id"],
            order["id"],
            str(order["total_price"]),
            f"{address['address']}, {address['city']} {address['postal_code']}, {address['country']}",
        )

    @classmethod
    def order_status_changed(cls, order: dict, event: str):
        cls._enqueue(send_order_status_task, order["user_id"], order["id"], event)


@celery_app.task(name="storefront.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(user_id: int, order_id: int, total_price: str, shipping_address: str):
    # e-mail delivery lives outside this service, the task only records the event
    logger.info(
        f"[NOTIFICATION] User {user_id}: order {order_id} confirmed, "
        f"total {total_price}, ship to {shipping_address}"
    )
    return {"user_id": user_id, "order_id": order_id, "event": "confirmed", "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_order_status_task")
def send_order_status_task(user_id: int, order_id: int, event: str):
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} {event}")
    return {"user_id": user_id, "order_id": order_id, "event": event, "status": "sent"}
