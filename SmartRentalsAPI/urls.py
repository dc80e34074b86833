"""
URL configuration for SmartRentalsAPI project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.0/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView


def api_root(request):
    """Root API endpoint showing available endpoints"""
    return JsonResponse({
        'message': 'Welcome to SmartRentals API',
        'version': '1.0.0',
        'endpoints': {
            'docs': '/api/docs/',
            'schema': '/api/schema/',
            'admin': '/admin/',
            'health': '/api/v1/health/',
            'api_v1': '/api/v1/',
        },
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin/', admin.site.urls),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema')),
    # v1 namespace
    path('api/v1/', include(('core.urls', 'core'), namespace='v1-core')),
    path('api/v1/', include(('finance.payment.urls', 'finance-payment'), namespace='v1-finance-payment')),
    path('api/v1/config/', include(('integrations.urls', 'integrations'), namespace='v1-integrations')),
]

# default: "Django Administration"
admin.site.site_header = 'SmartRentals'
# default: "Site administration"
admin.site.index_title = 'SmartRentals'
admin.site.site_title = 'SmartRentals'
