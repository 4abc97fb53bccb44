from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.core.services.mess_plans import cleanup_old_plans


class Command(BaseCommand):
    help = 'Delete approved or rejected mess plans that ended more than N months ago'

    def add_arguments(self, parser):
        parser.add_argument(
            '--months',
            type=int,
            default=settings.MESS_CONFIG['mess_plan_retention_months'],
            help='Retention period in months (default from MESS_CONFIG)',
        )

    def handle(self, *args, **options):
        months = options['months']
        if months < 0:
            raise CommandError('--months must be zero or positive')

        deleted = cleanup_old_plans(months)
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} old mess plans."))
