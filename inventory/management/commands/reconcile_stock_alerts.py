"""
Management command para restablecer la correspondencia entre stock y alertas.
Uso: python manage.py reconcile_stock_alerts [--product <uuid>] [--dry-run]
"""
from django.core.management.base import BaseCommand, CommandError

from core.exceptions import DomainError
from inventory.services import StockAlertService


class Command(BaseCommand):
    help = "Abre las alertas faltantes y resuelve las sobrantes según el stock actual"

    def add_arguments(self, parser):
        parser.add_argument(
            '--product',
            dest='product_id',
            help='Reconciliar solo este producto (UUID)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Solo reporta lo que cambiaría, sin escribir'
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        try:
            report = StockAlertService.reconcile(options.get('product_id'), dry_run=dry_run)
        except DomainError as exc:
            raise CommandError(f"No se pudo reconciliar: {exc.detail.get('detail', exc)}") from exc

        prefix = "[dry-run] " if dry_run else ""
        self.stdout.write(
            self.style.SUCCESS(
                f"{prefix}Productos revisados: {report.checked}. "
                f"Alertas abiertas: {report.opened}. "
                f"Alertas resueltas: {report.resolved}. "
                f"Duplicadas resueltas: {report.duplicates_resolved}."
            )
        )
