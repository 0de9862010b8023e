"""User and authentication API views.

Exposes ``UserService``/``AuthService`` via HTTP.  Domain exceptions are
caught and translated into HTTP status codes here.
"""

from __future__ import annotations

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import bad_request, not_found, validation_fields
from modules.core.permissions import IsAdmin, IsCustomer
from modules.users.dtos import CreateAddressDTO, CreateUserDTO
from modules.users.exceptions import (
    InvalidCredentials,
    TokenError,
    UserAlreadyExists,
    UserHasOrders,
    UserNotFound,
)
from modules.users.models import User
from modules.users.repositories.django_repository import UserDjangoRepository
from modules.users.serializers import (
    AddressSerializer,
    CreateUserSerializer,
    LoginSerializer,
    UserWithRolesAndAddressesAndOrdersSerializer,
    UserWithRolesSerializer,
)
from modules.users.services import AuthService, UserService
from modules.users.tokens import TokenIssuer

logger = structlog.get_logger(__name__)


def _issuer_url(request: Request) -> str:
    return request.build_absolute_uri(request.path)


class UserViewSet(GenericViewSet):
    """Accounts, saved addresses and token refresh.

    ``list``/``destroy`` are admin-only, sign-up is public, addresses
    belong to the calling customer.
    """

    queryset = User.objects.all()
    serializer_class = UserWithRolesSerializer
    lookup_value_regex = r"\d+"
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = UserService(repository=UserDjangoRepository())

    def get_permissions(self):
        if self.action in ("list", "destroy"):
            return [IsAdmin()]
        if self.action == "create":
            return [AllowAny()]
        if self.action == "addresses":
            return [IsCustomer()]
        return super().get_permissions()

    def list(self, request: Request) -> Response:
        """GET /api/v1/user"""
        users = self._service.list_users()
        return Response(UserWithRolesAndAddressesAndOrdersSerializer(users, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/user"""
        serializer = CreateUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateUserDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return bad_request(validation_fields(exc))

        try:
            user = self._service.create_user(dto)
        except UserAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except DjangoValidationError as exc:
            return bad_request(("password", message) for message in exc.messages)

        return Response(UserWithRolesSerializer(user).data, status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/user/{pk}"""
        try:
            self._service.delete_user(int(pk))
        except UserNotFound:
            return not_found("userId")
        except UserHasOrders as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=False,
        methods=["get"],
        url_path="refreshToken",
        authentication_classes=[],
        permission_classes=[AllowAny],
    )
    def refresh_token(self, request: Request) -> Response:
        """GET /api/v1/user/refreshToken with ``Authorization: Bearer <refresh>``.

        Failures answer 403 with the raw reason in ``error_message``.
        """
        header = request.META.get("HTTP_AUTHORIZATION", "")
        prefix = "Bearer "
        if not header.startswith(prefix):
            return Response(
                {"error_message": "Refresh token is missing."},
                status=status.HTTP_403_FORBIDDEN,
            )

        refresh_token = header[len(prefix):].strip()
        auth = AuthService(UserDjangoRepository(), TokenIssuer.from_settings())
        try:
            access_token = auth.refresh_access_token(refresh_token, _issuer_url(request))
        except TokenError as exc:
            return Response(
                {"error_message": str(exc)}, status=status.HTTP_403_FORBIDDEN
            )

        tokens = {"access_token": access_token, "refresh_token": refresh_token}
        return Response(tokens, headers=tokens)

    @action(detail=False, methods=["get", "post"], url_path="address")
    def addresses(self, request: Request) -> Response:
        """GET/POST /api/v1/user/address (caller's saved addresses)."""
        if request.method == "GET":
            addresses = self._service.list_addresses(request.user.id)
            return Response(AddressSerializer(addresses, many=True).data)

        serializer = AddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateAddressDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return bad_request(validation_fields(exc))
        address = self._service.add_address(request.user.id, dto)
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """POST /api/v1/login: credentials in, token pair out (headers + body)."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        auth = AuthService(UserDjangoRepository(), TokenIssuer.from_settings())
        try:
            pair = auth.login(data["login"], data["password"], _issuer_url(request))
        except InvalidCredentials as exc:
            # returned directly: without authenticators DRF would turn 401 into 403
            return Response({"detail": str(exc)}, status=status.HTTP_401_UNAUTHORIZED)
        except TokenError as exc:
            logger.error("auth.token_issue_failed", error=str(exc))
            return Response(
                {"detail": "Token service unavailable."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        tokens = {"access_token": pair.access_token, "refresh_token": pair.refresh_token}
        return Response(tokens, headers=tokens)
