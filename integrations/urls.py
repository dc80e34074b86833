from django.urls import path
from .views import MpesaConfigView, MpesaRegisterUrlsView
from .health_views import mpesa_health_check

urlpatterns = [
    path('mpesa/', MpesaConfigView.as_view(), name='mpesa-config'),
    path('mpesa/register-urls/', MpesaRegisterUrlsView.as_view(), name='mpesa-register-urls'),
    path('mpesa/health/', mpesa_health_check, name='mpesa-health'),
]
