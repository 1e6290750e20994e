from django.urls import path, include
from rest_framework.routers import DefaultRouter
from inventory import views


app_name = 'inventory'

router = DefaultRouter()
router.register('items', views.InventoryItemModelViewSet)
router.register('assignments', views.EquipmentAssignmentReadOnlyViewSet)

urlpatterns = [
    path('', include(router.urls)),
]
