from django.core.management.base import BaseCommand

from budget.importing import purge_expired_pending


class Command(BaseCommand):
    help = "Delete pending (imported, uncommitted) transactions past their expiry"

    def handle(self, *args, **options):
        deleted = purge_expired_pending()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired pending transaction(s)."))
