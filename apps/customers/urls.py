from django.urls import path, include
from rest_framework.routers import DefaultRouter
from customers import views


app_name = 'customers'

router = DefaultRouter()
router.register('workflow', views.ClientWorkflowStatusReadOnlyViewSet)
router.register('', views.CustomerModelViewSet)

urlpatterns = [
    path('portal/renew/', views.PortalRenewView.as_view()),
    path('portal/dashboard/', views.PortalDashboardView.as_view()),
    path('portal/wallet-transactions/', views.PortalWalletTransactionsView.as_view()),
    path('portal/payments/', views.PortalPaymentHistoryView.as_view()),
    path('', include(router.urls)),
]
