"""Product API views.

Catalogue reads are public; creating and editing products requires
``ROLE_ADMIN``.  Domain exceptions are translated into HTTP responses
here.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import bad_request, not_found, validation_fields
from modules.core.permissions import IsAdmin
from modules.products.dtos import CreateProductDTO, UpdateProductDTO
from modules.products.exceptions import ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService


class ProductViewSet(ListModelMixin, GenericViewSet):
    """Catalogue endpoints.

    All ORM access goes through the service/repository layer; the list
    endpoint filters and pages the repository queryset.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "description"]
    ordering_fields = ["name", "price", "created_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    serializer_class = ProductSerializer
    lookup_value_regex = r"\d+"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = ProductDjangoRepository()
        self._service = ProductService(repository=self._repository)

    def get_queryset(self):
        return self._repository.queryset()

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [AllowAny()]
        return [IsAdmin()]

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/product/{pk}"""
        try:
            product = self._service.get_product(int(pk))
        except ProductNotFound:
            return not_found("productId")
        return Response(ProductSerializer(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/product"""
        data = request.data
        try:
            dto = CreateProductDTO(
                name=data.get("name", ""),
                price=data.get("price", 0),
                description=data.get("description", ""),
            )
        except PydanticValidationError as exc:
            return bad_request(validation_fields(exc))

        product = self._service.create_product(dto)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/product/{pk}"""
        data = request.data
        try:
            dto = UpdateProductDTO(
                name=data.get("name"),
                price=data.get("price"),
                description=data.get("description"),
            )
        except PydanticValidationError as exc:
            return bad_request(validation_fields(exc))

        try:
            product = self._service.update_product(int(pk), dto)
        except ProductNotFound:
            return not_found("productId")
        return Response(ProductSerializer(product).data)
