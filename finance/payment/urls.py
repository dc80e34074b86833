"""
URL routing for rent payments
"""
from django.urls import path, re_path
from .views import (
    C2BValidationView,
    C2BConfirmationView,
    PaymentListView,
    CashPaymentView,
    AssignPaymentView,
    TenantPaymentHistoryView,
)

urlpatterns = [
    # Daraja callbacks, registered without a trailing slash
    re_path(r'^payments/c2b/validation/?$', C2BValidationView.as_view(), name='c2b-validation'),
    re_path(r'^payments/c2b/confirmation/?$', C2BConfirmationView.as_view(), name='c2b-confirmation'),

    path('payments/', PaymentListView.as_view(), name='payment-list'),
    path('payments/cash/', CashPaymentView.as_view(), name='payment-cash'),
    path('payments/<int:pk>/assign/', AssignPaymentView.as_view(), name='payment-assign'),
    path('tenants/<int:tenant_id>/history/', TenantPaymentHistoryView.as_view(), name='tenant-payment-history'),
]
