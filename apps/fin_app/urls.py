from django.urls import path, include
from rest_framework.routers import DefaultRouter
from fin_app import views


app_name = 'fin_app'

router = DefaultRouter()
router.register('invoices', views.InvoiceModelViewSet)
router.register('payments', views.PaymentModelViewSet)

urlpatterns = [
    path('mpesa/callback/stk/', views.StkCallbackView.as_view()),
    path('mpesa/callback/c2b/', views.C2BConfirmationView.as_view()),
    path('family-bank/callback/stk/', views.FamilyBankStkCallbackView.as_view()),
    path('family-bank/callback/c2b/', views.FamilyBankC2BCallbackView.as_view()),
    path('', include(router.urls)),
]
