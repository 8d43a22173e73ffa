"""
Management command to register the BOGO scheduled tasks with Django-Q2.
"""

from typing import Any

from django.core.management.base import BaseCommand

from apps.promotions.tasks import setup_promotion_scheduled_tasks


class Command(BaseCommand):
    help = "Set up scheduled tasks for BOGO promotions (status sweep + usage reconciliation)"

    def handle(self, *args: Any, **options: Any) -> None:
        self.stdout.write("🎁 Setting up BOGO promotion tasks...")
        for task_name, result in setup_promotion_scheduled_tasks().items():
            if result == "already_exists":
                self.stdout.write(self.style.WARNING(f"  - {task_name}: Task already exists (skipped)"))
            else:
                self.stdout.write(self.style.SUCCESS(f"  - {task_name}: Created successfully"))
