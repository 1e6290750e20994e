from django.urls import path, include
from rest_framework.routers import DefaultRouter
from messenger import views


app_name = 'messenger'

router = DefaultRouter()
router.register('templates', views.SmsTemplateModelViewSet)
router.register('messages', views.SmsMessageReadOnlyViewSet)

urlpatterns = [
    path('bulk/', views.BulkSmsView.as_view()),
    path('', include(router.urls)),
]
