"""User and authentication URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import SimpleRouter

from modules.users.views import LoginView, UserViewSet

router = SimpleRouter(trailing_slash=False)
router.register("user", UserViewSet, basename="user")

urlpatterns = [
    path("login", LoginView.as_view(), name="login"),
    *router.urls,
]
