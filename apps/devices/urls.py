from django.urls import path, include
from rest_framework.routers import DefaultRouter

from devices.views import NetworkDeviceModelViewSet


app_name = "devices"

router = DefaultRouter()
router.register("", NetworkDeviceModelViewSet)

urlpatterns = [
    path("", include(router.urls)),
]
