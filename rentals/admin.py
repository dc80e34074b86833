from django.contrib import admin
from .models import Property, Unit, Tenant


class UnitInline(admin.TabularInline):
    model = Unit
    extra = 0


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ('title', 'landlord', 'location', 'vacancy', 'created_at')
    list_filter = ('vacancy', 'property_type')
    search_fields = ('title', 'location')
    inlines = [UnitInline]


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ('tenant_name', 'landlord', 'unit', 'payment_no1', 'payment_no2', 'rent', 'balance')
    search_fields = ('tenant_name', 'payment_no1', 'payment_no2')
    readonly_fields = ('balance', 'created_at', 'updated_at')
