from django.core.management.base import BaseCommand, CommandError

from core.exceptions import RentalsError
from integrations.models import LandlordPaymentConfig
from integrations.services.config_service import LandlordConfigService


class Command(BaseCommand):
    help = 'Re-register M-Pesa C2B callback URLs for landlord payment configs'

    def add_arguments(self, parser):
        parser.add_argument('--landlord', type=int, help='Only register for this landlord id')
        parser.add_argument('--base-url', help='Callback base URL (default: MPESA_CALLBACK_BASE_URL)')
        parser.add_argument('--pending-only', action='store_true',
                            help='Skip configs whose URLs are already registered')

    def handle(self, *args, **options):
        configs = LandlordPaymentConfig.objects.all().order_by('id')
        if options.get('landlord'):
            configs = configs.filter(landlord_id=options['landlord'])
        if options.get('pending_only'):
            configs = configs.filter(urls_registered_at__isnull=True)

        base_url = options.get('base_url')
        try:
            base_url = base_url or LandlordConfigService.resolve_callback_base()
        except RentalsError as e:
            raise CommandError(f"{e.message}; pass --base-url or set MPESA_CALLBACK_BASE_URL")

        registered = failed = 0
        for config in configs:
            try:
                result = LandlordConfigService.register_urls(config, callback_base_url=base_url)
            except RentalsError as e:
                failed += 1
                detail = getattr(e, 'body', '') or e.message
                self.stdout.write(self.style.ERROR(f"  {config.short_code} (landlord {config.landlord_id}): {detail}"))
                continue
            registered += 1
            note = ' (already registered)' if result['already_registered'] else ''
            self.stdout.write(f"  {config.short_code} (landlord {config.landlord_id}) registered{note}")

        summary = f"Registered {registered} config(s), {failed} failed"
        if failed:
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
