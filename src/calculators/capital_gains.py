"""Capital gains calculator: FIFO lot matching with the 12-month discount."""

import datetime
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Literal, NamedTuple

from pydantic import BaseModel

from src.calculators.money import ZERO, Amount

logger = logging.getLogger(__name__)

DAYS_FOR_CGT_DISCOUNT = 365
CGT_DISCOUNT_RATE = Decimal("0.5")


class Transaction(BaseModel):
    """A buy or sell of a capital asset (e.g. a crypto holding)."""

    type: Literal["buy", "sell", "initial_balance"]
    asset_name: str
    date: datetime.date
    price: Amount = ZERO  # total cost or proceeds, not per unit
    quantity: Amount = ZERO
    fees: Amount = ZERO

    @property
    def units(self) -> Decimal:
        # A blank quantity means a single unit
        return self.quantity if self.quantity > 0 else Decimal(1)


class CapitalGainEvent(NamedTuple):
    """One sell matched against one purchase lot."""

    asset_name: str
    sell_date: datetime.date
    quantity: Decimal
    proceeds: Decimal
    cost_base: Decimal
    gross_gain: Decimal
    holding_days: int
    discount_applied: bool
    taxable_gain: Decimal


class CapitalGainsSummary(NamedTuple):
    total_gains: Decimal
    total_losses: Decimal
    total_discount: Decimal
    net_capital_gain: Decimal
    events: list[CapitalGainEvent]


class _Lot:
    __slots__ = ("acquired", "quantity", "unit_cost")

    def __init__(self, acquired: datetime.date, quantity: Decimal, unit_cost: Decimal) -> None:
        self.acquired = acquired
        self.quantity = quantity
        self.unit_cost = unit_cost


def _match_asset(asset_name: str, transactions: list[Transaction]) -> list[CapitalGainEvent]:
    lots: list[_Lot] = []
    events: list[CapitalGainEvent] = []

    for tx in transactions:
        units = tx.units
        if tx.type in ("buy", "initial_balance"):
            lots.append(_Lot(tx.date, units, (tx.price + tx.fees) / units))
            continue

        net_proceeds = tx.price - tx.fees
        remaining = units
        while remaining > 0 and lots:
            lot = lots[0]
            taken = min(lot.quantity, remaining)
            cost_base = lot.unit_cost * taken
            proceeds = net_proceeds * taken / units
            gross_gain = proceeds - cost_base
            holding_days = (tx.date - lot.acquired).days
            discounted = gross_gain > 0 and holding_days >= DAYS_FOR_CGT_DISCOUNT
            taxable_gain = gross_gain * CGT_DISCOUNT_RATE if discounted else gross_gain

            events.append(CapitalGainEvent(
                asset_name=asset_name,
                sell_date=tx.date,
                quantity=taken,
                proceeds=proceeds,
                cost_base=cost_base,
                gross_gain=gross_gain,
                holding_days=holding_days,
                discount_applied=discounted,
                taxable_gain=taxable_gain,
            ))

            lot.quantity -= taken
            remaining -= taken
            if lot.quantity <= 0:
                lots.pop(0)

        if remaining > 0:
            logger.warning(
                "Sell of %s %s on %s exceeds recorded holdings; ignoring %s units",
                units, asset_name, tx.date, remaining,
            )

    return events


def calculate_capital_gains(transactions: list[Transaction]) -> CapitalGainsSummary:
    """Match sells to earlier buys per asset (FIFO) and net the result.

    Gains on lots held at least 12 months are halved; losses are then set
    against the discounted gains. The net figure never goes below zero.
    """
    by_asset: dict[str, list[Transaction]] = defaultdict(list)
    for tx in sorted(transactions, key=lambda t: t.date):
        by_asset[tx.asset_name].append(tx)

    events: list[CapitalGainEvent] = []
    for asset_name, asset_txs in by_asset.items():
        events.extend(_match_asset(asset_name, asset_txs))
    events.sort(key=lambda e: e.sell_date)

    total_gains = ZERO
    total_losses = ZERO
    total_discount = ZERO
    discounted_gains = ZERO
    for event in events:
        if event.gross_gain > 0:
            total_gains += event.gross_gain
            discounted_gains += event.taxable_gain
            total_discount += event.gross_gain - event.taxable_gain
        else:
            total_losses += -event.gross_gain

    return CapitalGainsSummary(
        total_gains=total_gains,
        total_losses=total_losses,
        total_discount=total_discount,
        net_capital_gain=max(discounted_gains - total_losses, ZERO),
        events=events,
    )
