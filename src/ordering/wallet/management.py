"""Wallet management — top-ups and points awards, each paired with a transaction row."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.config import get_settings
from ordering.domain import ordering
from ordering.wallet.wallet import (
    TransactionMethod,
    TransactionType,
    Wallet,
    WalletTransaction,
    wallet_for,
)


@ordering.command(part_of="Wallet")
class TopUpWallet:
    customer_id = Identifier(required=True)
    amount_cents = Integer(required=True, min_value=1)
    method = String(max_length=50, default=TransactionMethod.CARD.value)
    reference = String(max_length=255)


@ordering.command(part_of="Wallet")
class AwardPoints:
    customer_id = Identifier(required=True)
    points = Integer(required=True, min_value=1)
    reference = String(max_length=255)


@ordering.command_handler(part_of=Wallet)
class ManageWalletHandler:
    @handle(TopUpWallet)
    def top_up_wallet(self, command):
        wallet = wallet_for(command.customer_id)
        wallet.top_up(command.amount_cents)
        current_domain.repository_for(Wallet).add(wallet)
        current_domain.repository_for(WalletTransaction).add(
            WalletTransaction.record(
                customer_id=command.customer_id,
                transaction_type=TransactionType.TOP_UP,
                method=command.method or TransactionMethod.CARD.value,
                amount_cents=command.amount_cents,
                currency=get_settings().currency,
                reference=command.reference,
            )
        )
        return wallet.balance_cents

    @handle(AwardPoints)
    def award_points(self, command):
        wallet = wallet_for(command.customer_id)
        wallet.award_points(command.points)
        current_domain.repository_for(Wallet).add(wallet)
        current_domain.repository_for(WalletTransaction).add(
            WalletTransaction.record(
                customer_id=command.customer_id,
                transaction_type=TransactionType.CREDIT,
                method=TransactionMethod.POINTS.value,
                amount_cents=0,
                points=command.points,
                currency=get_settings().currency,
                reference=command.reference,
            )
        )
        return wallet.points
