from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['receipt', 'landlord', 'tenant', 'amount', 'method', 'status', 'created_at']
    list_filter = ['method', 'status', 'provider', 'created_at']
    search_fields = ['receipt', 'phone', 'account_ref', 'payer_name', 'tenant__tenant_name']
    readonly_fields = ['provider', 'receipt', 'amount', 'created_at', 'updated_at']
    raw_id_fields = ['landlord', 'tenant']

    def has_delete_permission(self, request, obj=None):
        # Ledger rows are never deleted
        return False
