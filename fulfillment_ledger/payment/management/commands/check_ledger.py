import logging

from django.core.management.base import BaseCommand, CommandError

from fulfillment_ledger.payment.services.consistency import find_consistency_faults

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Check that payments and expenses still balance against their payment applications"

    def add_arguments(self, parser):
        parser.add_argument("--client", help="Only check this client's payments and expenses")

    def handle(self, *args, **options):
        faults = find_consistency_faults(client=options.get("client"))

        if not faults:
            self.stdout.write(self.style.SUCCESS("Ledger is consistent"))
            return

        for fault in faults:
            logger.error(fault)
            self.stderr.write(fault)

        raise CommandError(f"{len(faults)} consistency fault(s) found")
