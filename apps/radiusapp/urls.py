from django.urls import path, include
from rest_framework.routers import DefaultRouter

from radiusapp import views


app_name = "radiusapp"

router = DefaultRouter()
router.register("groups", views.RadiusGroupModelViewSet)
router.register("servers", views.RadiusServerModelViewSet)
router.register("nas", views.NasClientModelViewSet)
router.register("users", views.RadiusUserModelViewSet)
router.register("sessions", views.RadiusSessionReadOnlyViewSet)
router.register("events", views.RadiusEventReadOnlyViewSet)
router.register("health", views.SystemTestResultReadOnlyViewSet)

urlpatterns = [
    path("status/", views.ClientStatusView.as_view()),
    path("reconcile/", views.ReconcileView.as_view()),
    path("hook/coa/", views.CoaHookView.as_view()),
    path("hook/sync/", views.SyncHookView.as_view()),
    path("hook/accounting/", views.AccountingHookView.as_view()),
    path("", include(router.urls)),
]
