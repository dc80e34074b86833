from django.contrib import admin
from django import forms
from .models import LandlordPaymentConfig, Till, Paybill
from .utils import encrypt_secret


class LandlordPaymentConfigForm(forms.ModelForm):
    """
    Credentials typed here are stored encrypted. Leave them blank to keep
    the current values.
    """
    consumer_key = forms.CharField(required=False, widget=forms.PasswordInput(render_value=False))
    consumer_secret = forms.CharField(required=False, widget=forms.PasswordInput(render_value=False))

    class Meta:
        model = LandlordPaymentConfig
        fields = '__all__'

    def clean(self):
        cleaned = super().clean()
        for field in ('consumer_key', 'consumer_secret'):
            value = cleaned.get(field)
            if value:
                cleaned[field] = encrypt_secret(value)
            elif self.instance.pk:
                cleaned[field] = getattr(self.instance, field)
            else:
                self.add_error(field, 'This field is required.')
        return cleaned


@admin.register(LandlordPaymentConfig)
class LandlordPaymentConfigAdmin(admin.ModelAdmin):
    form = LandlordPaymentConfigForm
    list_display = ('landlord', 'short_code', 'short_code_type', 'environment', 'validation_enabled', 'urls_registered_at')
    list_filter = ('short_code_type', 'environment', 'validation_enabled')
    search_fields = ('short_code', 'landlord__username', 'landlord__email')
    readonly_fields = ('urls_registered_at', 'created_at', 'updated_at')
    raw_id_fields = ('landlord',)


@admin.register(Till)
class TillAdmin(admin.ModelAdmin):
    list_display = ('till_number', 'landlord', 'active', 'created_at')
    list_filter = ('active',)
    search_fields = ('till_number', 'landlord__username')
    raw_id_fields = ('landlord',)


@admin.register(Paybill)
class PaybillAdmin(admin.ModelAdmin):
    list_display = ('paybill', 'account_number', 'landlord', 'active', 'created_at')
    list_filter = ('active',)
    search_fields = ('paybill', 'account_number', 'landlord__username')
    raw_id_fields = ('landlord',)
