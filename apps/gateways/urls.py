from django.urls import path, include
from rest_framework.routers import DefaultRouter

from gateways.views import MikrotikRouterModelViewSet


app_name = "gateways"

router = DefaultRouter()
router.register("routers", MikrotikRouterModelViewSet)

urlpatterns = [
    path("", include(router.urls))
]
