"""URL routing for the catalog."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import CottageViewSet, PackageViewSet, SafariTypeViewSet

router = DefaultRouter()
router.register(r"cottages", CottageViewSet, basename="cottage")
router.register(r"packages", PackageViewSet, basename="package")
router.register(r"safaris", SafariTypeViewSet, basename="safari")

urlpatterns = [
    path("", include(router.urls)),
]
