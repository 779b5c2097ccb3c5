"""
Management command to print the upcoming class schedule.

Instances are derived from templates on demand, so this is a read-only
view of what the instance listing would show.
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from scheduling import services
from scheduling.conf import get_setting


class Command(BaseCommand):
    help = 'List upcoming class instances expanded from active templates'

    def add_arguments(self, parser):
        parser.add_argument(
            '--weeks',
            type=int,
            default=get_setting('HORIZON_WEEKS'),
            help='Number of weeks ahead to expand (default: HORIZON_WEEKS setting)'
        )
        parser.add_argument(
            '--include-cancelled',
            action='store_true',
            help='Also list cancelled occurrences'
        )

    def handle(self, *args, **options):
        weeks = options['weeks']

        self.stdout.write(
            f'Expanding classes for the next {weeks} week(s)...'
        )

        instances = services.list_instances(
            timezone.localtime(),
            horizon_weeks=weeks,
            include_cancelled=options['include_cancelled'],
        )

        for instance in instances:
            status_str = f" [{instance.status}]" if instance.is_cancelled else ""
            self.stdout.write(
                f"{instance.start_at.strftime('%Y-%m-%d %H:%M')}  "
                f"{instance.name} ({instance.instance_id}){status_str}"
            )

        self.stdout.write(
            self.style.SUCCESS(
                f'Found {len(instances)} upcoming instance(s)'
            )
        )
