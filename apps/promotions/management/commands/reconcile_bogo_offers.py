"""
Management command to run the BOGO status sweep and usage reconciliation.

Usage:
    python manage.py reconcile_bogo_offers
    python manage.py reconcile_bogo_offers --statuses-only
    python manage.py reconcile_bogo_offers --usage-only
"""

from typing import Any

from django.core.management.base import BaseCommand, CommandError, CommandParser

from apps.promotions.offer_service import BogoOfferService
from apps.promotions.usage_service import UsageLedgerService


class Command(BaseCommand):
    help = "Align BOGO offer statuses with their windows and usage counters with the ledger"

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("--statuses-only", action="store_true", help="Only run the status sweep")
        parser.add_argument("--usage-only", action="store_true", help="Only reconcile usage counters")

    def handle(self, *args: Any, **options: Any) -> None:
        if options["statuses_only"] and options["usage_only"]:
            raise CommandError("Cannot specify both --statuses-only and --usage-only")

        if not options["usage_only"]:
            counts = BogoOfferService.reconcile_statuses()
            self.stdout.write(
                self.style.SUCCESS(
                    f"🔄 Status sweep: {counts['activated']} activated, {counts['deactivated']} deactivated"
                )
            )

        if not options["statuses_only"]:
            results = UsageLedgerService.reconcile_usage_counts()
            style = self.style.WARNING if results["repaired"] else self.style.SUCCESS
            self.stdout.write(style(f"📒 Usage counters repaired: {results['repaired']}"))
            for offer_id in results["offer_ids"]:
                self.stdout.write(f"  - {offer_id}")
