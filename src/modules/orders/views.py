"""Order API views.

Exposes the ``OrderService`` via HTTP using a DRF ViewSet.  Read
endpoints are served through the response cache (``modules.orders.cache``);
write endpoints evict the affected keys once the service has committed.
Domain exceptions are caught and translated into HTTP status codes here.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import bad_request, not_found, validation_fields
from modules.core.permissions import IsAdmin, IsCustomer
from modules.orders import cache
from modules.orders.dtos import CreateOrderDTO, UpdateOrderStatusDTO
from modules.orders.exceptions import InvalidOrderStatus, OrderNotFound, OrderValidationError
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderSerializer,
    OrderWithAddressSerializer,
    OrderWithItemsAndAddressSerializer,
    OrderWithItemsSerializer,
)
from modules.orders.services import OrderService
from modules.payments.exceptions import PaymentProviderError
from modules.payments.gateway import StripePaymentGateway
from modules.products.repositories.django_repository import ProductDjangoRepository

ORDER_NOT_FOUND_FIELD = "orderId"


class OrderViewSet(GenericViewSet):
    """The caller's orders, plus the admin status update.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    lookup_value_regex = r"\d+"
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            payment_gateway=StripePaymentGateway(),
        )

    def get_permissions(self):
        if self.action == "update":
            return [IsAdmin()]
        return [IsCustomer()]

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    def _cached_order(
        self,
        request: Request,
        pk: str,
        suffix: str,
        serializer_class,
        **relations: bool,
    ) -> Response:
        order_id = int(pk)
        user_id = request.user.id

        def load() -> dict:
            order = self._service.get_order(order_id, user_id, **relations)
            return dict(serializer_class(order).data)

        try:
            body = cache.order_cache.get_or_set(cache.order_key(order_id, suffix), load)
        except OrderNotFound:
            return not_found(ORDER_NOT_FOUND_FIELD)

        # order:* keys are shared between users
        if body.get("user_id") != user_id:
            return not_found(ORDER_NOT_FOUND_FIELD)
        return Response(body)

    def list(self, request: Request) -> Response:
        """GET /api/v1/order"""
        user_id = request.user.id

        def load() -> list:
            orders = self._service.list_orders(user_id)
            return list(OrderSerializer(orders, many=True).data)

        return Response(cache.order_cache.get_or_set(cache.orders_key(user_id), load))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/order/{pk}"""
        return self._cached_order(request, pk, "", OrderSerializer)

    @action(detail=True, methods=["get"], url_path="items")
    def items(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/order/{pk}/items"""
        return self._cached_order(
            request, pk, "-items", OrderWithItemsSerializer, items=True
        )

    @action(detail=True, methods=["get"], url_path="address")
    def address(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/order/{pk}/address"""
        return self._cached_order(
            request, pk, "-address", OrderWithAddressSerializer, address=True
        )

    @action(detail=True, methods=["get"], url_path="items-address")
    def items_address(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/order/{pk}/items-address"""
        return self._cached_order(
            request,
            pk,
            "-items-address",
            OrderWithItemsAndAddressSerializer,
            items=True,
            address=True,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/order: answers with the items and address snapshot."""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateOrderDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return bad_request(validation_fields(exc))

        try:
            order = self._service.create_order(dto, user_id=request.user.id)
        except OrderValidationError as exc:
            return bad_request([(exc.field, str(exc))])

        cache.evict_after_create()
        order = self._service.get_order(order.id, request.user.id, items=True, address=True)
        return Response(
            OrderWithItemsAndAddressSerializer(order).data,
            status=status.HTTP_201_CREATED,
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/order/{pk} (admin).

        The body is either a bare JSON string (``"PAID"``) or
        ``{"status": "PAID"}``.
        """
        new_status: Any = request.data
        if isinstance(new_status, dict):
            new_status = new_status.get("status")
        try:
            dto = UpdateOrderStatusDTO(status=new_status)
        except PydanticValidationError as exc:
            return bad_request(validation_fields(exc))

        order_id = int(pk)
        try:
            order = self._service.update_status(order_id, dto.status.value)
        except OrderNotFound:
            return not_found(ORDER_NOT_FOUND_FIELD)
        except InvalidOrderStatus as exc:
            return bad_request([("status", str(exc))])

        cache.evict_order(order_id)
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/order/{pk}: refund through Stripe, then delete."""
        order_id = int(pk)
        try:
            self._service.refund_order(order_id, user_id=request.user.id)
        except OrderNotFound:
            return not_found(ORDER_NOT_FOUND_FIELD)
        except PaymentProviderError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

        cache.evict_order(order_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
