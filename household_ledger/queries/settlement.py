"""
Settlement Calculator

Net debt between the two personas, from payments one persona made on
the other's behalf through a personal (main or partner) account.

Entries on shared accounts or on unknown accounts never create debt.
The whole ledger is scanned, independent of any view.
"""

from household_ledger.models.ledger import LedgerSnapshot, Owner, Settlement
from household_ledger.services.classifier import AccountClassifier


class SettlementCalculator:

    def __init__(self, snapshot: LedgerSnapshot):
        self._snapshot = snapshot
        self._classifier = AccountClassifier.from_snapshot(snapshot)

    def settlement(self) -> Settlement:
        partner_owes_main = 0
        main_owes_partner = 0

        for entry in self._snapshot.all():
            if not self._classifier.is_persona_account(entry.account):
                continue
            if entry.owner == Owner.PARTNER and entry.paid_by == Owner.MAIN:
                partner_owes_main += entry.amount
            elif entry.owner == Owner.MAIN and entry.paid_by == Owner.PARTNER:
                main_owes_partner += entry.amount

        return Settlement.from_totals(partner_owes_main, main_owes_partner)
