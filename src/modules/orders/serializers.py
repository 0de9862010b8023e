"""Order DRF serializers for API input/output.

One output serializer per view variant: bare order, with items, with
address, with items and address.  Every variant carries ``user_id`` so
cached bodies can be checked against the caller.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import MAX_ITEM_QUANTITY
from modules.orders.models import Order, OrderAddress, OrderItem

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(max_value=MAX_ITEM_QUANTITY)


class CreateOrderSerializer(serializers.Serializer):
    """Shape of the order creation payload; rules live in ``CreateOrderDTO``."""

    stripe_id = serializers.CharField(max_length=255)
    address_id = serializers.IntegerField(required=False, allow_null=True)
    items = CreateOrderItemSerializer(many=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Line item with the price snapshot taken at checkout."""

    product_id = serializers.IntegerField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class OrderAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderAddress
        fields = list(OrderAddress.ADDRESS_FIELDS)
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = ["id", "user_id", "stripe_id", "status"]
        read_only_fields = fields


class OrderWithItemsSerializer(OrderSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["items"]
        read_only_fields = fields


class OrderWithAddressSerializer(OrderSerializer):
    address = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["address"]
        read_only_fields = fields

    def get_address(self, order: Order):
        try:
            address = order.address
        except OrderAddress.DoesNotExist:
            return None
        return OrderAddressSerializer(address).data


class OrderWithItemsAndAddressSerializer(OrderWithAddressSerializer):
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta(OrderWithAddressSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["items", "address"]
        read_only_fields = fields
