# marketplace/services/notification_service.py
from marketplace.celery_worker import celery_app
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, processed asynchronously by Celery.
    """

    @staticmethod
    def send_order_notification(customer_id: int, order_id: int, seller_id: int):
        """
        Tell the customer and the seller that a new order was placed.
        """
        send_order_notification_task.delay(customer_id, order_id, seller_id)


@celery_app.task(name="marketplace.services.notification_service.send_order_notification_task")
def send_order_notification_task(customer_id: int, order_id: int, seller_id: int):
    """
    Celery task. Delivery channels (email, push) live outside this service,
    here the event is only logged.
    """
    logger.info(f"[NOTIFICATION] Customer {customer_id}: order {order_id} placed with seller {seller_id}")
    logger.info(f"[NOTIFICATION] Seller {seller_id}: new order {order_id} to fulfil")

    return {"customer_id": customer_id, "order_id": order_id, "seller_id": seller_id, "status": "sent"}
