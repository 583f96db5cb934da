"""URL routes for the bookings app."""

from django.urls import path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import BookingViewSet, PropertyAvailabilityView

router = SimpleRouter()
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = [
    path(
        "properties/<uuid:property_id>/availability/",
        PropertyAvailabilityView.as_view(),
        name="property-availability",
    ),
] + router.urls
