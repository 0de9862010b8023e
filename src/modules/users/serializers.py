"""User DRF serializers for API input/output.

Input serializers only check the request shape; business validation
happens in the Pydantic DTOs and the Service Layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.serializers import OrderSerializer
from modules.users.models import Address, User


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "street",
            "number",
            "complement",
            "district",
            "city",
            "state",
            "zip_code",
        ]
        read_only_fields = ["id"]


class UserWithRolesSerializer(serializers.ModelSerializer):
    roles = serializers.SlugRelatedField(many=True, read_only=True, slug_field="name")

    class Meta:
        model = User
        fields = ["id", "email", "roles"]
        read_only_fields = fields


class UserWithRolesAndAddressesAndOrdersSerializer(UserWithRolesSerializer):
    """Admin listing: account, roles, saved addresses and orders."""

    addresses = AddressSerializer(many=True, read_only=True)
    orders = OrderSerializer(many=True, read_only=True)

    class Meta(UserWithRolesSerializer.Meta):
        fields = ["id", "email", "roles", "addresses", "orders"]
        read_only_fields = fields


class CreateUserSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class LoginSerializer(serializers.Serializer):
    """Accepts ``username`` (the e-mail) or ``email`` plus ``password``."""

    username = serializers.CharField(required=False)
    email = serializers.CharField(required=False)
    password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate(self, attrs):
        login = attrs.get("username") or attrs.get("email")
        if not login:
            raise serializers.ValidationError({"username": "This field is required."})
        attrs["login"] = login
        return attrs


class TokenPairSerializer(serializers.Serializer):
    access_token = serializers.CharField()
    refresh_token = serializers.CharField()
