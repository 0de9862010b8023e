"""Celery tasks for the orders module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from modules.orders.constants import OrderStatus

logger = structlog.get_logger(__name__)


@shared_task(name="orders.send_order_status_email", ignore_result=True)
def send_order_status_email(order_id: int, email: str, old_status: str, new_status: str) -> None:
    """Tell the owner of *order_id* that its status changed."""
    label = OrderStatus(new_status).label
    send_mail(
        subject=f"Pedido #{order_id}: {label}",
        message=(
            f"O status do seu pedido #{order_id} mudou de {old_status} para {new_status}."
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[email],
    )
    logger.info(
        "order.status_email_sent",
        order_id=order_id,
        old_status=old_status,
        new_status=new_status,
    )
