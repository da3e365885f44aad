"""
Data models for trades, positions and the trading record.

``Trade`` is an immutable value object (frozen dataclass).  ``Position`` and
``TradingRecord`` are the mutable structures: the backtest loop (or a live
runner) operates them bar after bar, while rules only **read** them.

A position is one round trip: exactly one entry trade and at most one exit
trade.  The trading record keeps the closed positions in order plus the
current one, which is *new* (no entry yet) whenever the record is flat.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from ruleflow.exceptions import PositionStateError
from ruleflow.num import NaN, is_nan


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Side(enum.IntEnum):
    """Trade direction. A BUY entry opens a long position, a SELL entry a short one."""
    SELL = -1
    BUY  = 1

    def complement(self) -> "Side":
        return Side.SELL if self == Side.BUY else Side.BUY


# ---------------------------------------------------------------------------
# Immutable value objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Trade:
    """
    A single buy or sell execution.

    Attributes
    ----------
    index : int
        Bar index the trade was executed at.
    side : Side
        ``BUY`` or ``SELL``.
    price : float
        Raw execution price (NaN when unknown).
    amount : float
        Traded quantity.
    cost : float
        Total transaction cost of this execution.
    """
    index: int
    side: Side
    price: float = NaN
    amount: float = 1.0
    cost: float = 0.0

    @property
    def is_buy(self) -> bool:
        return self.side == Side.BUY

    @property
    def is_sell(self) -> bool:
        return self.side == Side.SELL

    @property
    def net_price(self) -> float:
        """Execution price adjusted by the per-unit cost (buys pay more, sells receive less)."""
        if is_nan(self.price) or not self.amount:
            return self.price
        per_unit = self.cost / self.amount
        return self.price + per_unit if self.is_buy else self.price - per_unit

    @property
    def value(self) -> float:
        return self.price * self.amount


# ---------------------------------------------------------------------------
# Mutable position
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Position:
    """
    One round-trip trade intent: an entry and (optionally) an exit.

    Parameters
    ----------
    starting_side : Side
        Side of the entry trade; the exit trade uses the complement.
    """
    starting_side: Side = Side.BUY
    entry: Optional[Trade] = None
    exit: Optional[Trade] = None

    def operate(self, index: int, price: float = NaN, amount: float = 1.0, cost: float = 0.0) -> Trade:
        """Open the position on the first call, close it on the second."""
        if self.is_new:
            self.entry = Trade(index, self.starting_side, price, amount, cost)
            return self.entry
        if self.is_opened:
            if index < self.entry.index:
                raise PositionStateError(
                    f"Exit index {index} precedes entry index {self.entry.index}."
                )
            self.exit = Trade(index, self.starting_side.complement(), price, amount, cost)
            return self.exit
        raise PositionStateError("Cannot operate a closed position.")

    @property
    def is_new(self) -> bool:
        return self.entry is None

    @property
    def is_opened(self) -> bool:
        return self.entry is not None and self.exit is None

    @property
    def is_closed(self) -> bool:
        return self.entry is not None and self.exit is not None

    @property
    def gross_profit(self) -> float:
        """Profit on raw prices; NaN while the position is not closed."""
        if not self.is_closed:
            return NaN
        diff = (self.exit.price - self.entry.price) * self.entry.amount
        return diff if self.entry.is_buy else -diff

    @property
    def profit(self) -> float:
        """Profit on net (cost-adjusted) prices; NaN while the position is not closed."""
        if not self.is_closed:
            return NaN
        diff = (self.exit.net_price - self.entry.net_price) * self.entry.amount
        return diff if self.entry.is_buy else -diff


# ---------------------------------------------------------------------------
# Trading record
# ---------------------------------------------------------------------------

@dataclass
class TradingRecord:
    """
    Ordered history of closed positions plus the current position.

    Parameters
    ----------
    starting_side : Side
        Side used for every entry trade recorded here.
    cost_rate : float
        Linear transaction cost: each execution costs ``price * amount * cost_rate``.

    Examples
    --------
    >>> record = TradingRecord(Side.BUY)
    >>> record.enter(2, 114.0)
    True
    >>> record.current_position.is_opened
    True
    >>> record.exit(5, 120.0)
    True
    >>> record.is_closed()
    True
    """
    starting_side: Side = Side.BUY
    cost_rate: float = 0.0
    positions: List[Position] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    current_position: Position = field(init=False)

    def __post_init__(self) -> None:
        self.current_position = Position(self.starting_side)

    # ------------------------------------------------------------------ #
    #  Operations                                                         #
    # ------------------------------------------------------------------ #

    def operate(self, index: int, price: float = NaN, amount: float = 1.0) -> Trade:
        if self.current_position.is_closed:
            raise PositionStateError("Current position is already closed.")
        last = self.last_trade()
        if last is not None and index < last.index:
            raise PositionStateError(
                f"Trade index {index} precedes the last recorded trade index {last.index}."
            )
        cost = 0.0 if is_nan(price) else price * amount * self.cost_rate
        trade = self.current_position.operate(index, price, amount, cost)
        self.trades.append(trade)
        if self.current_position.is_closed:
            self.positions.append(self.current_position)
            self.current_position = Position(self.starting_side)
        return trade

    def enter(self, index: int, price: float = NaN, amount: float = 1.0) -> bool:
        """Record an entry; returns ``False`` if a position is already open."""
        if not self.current_position.is_new:
            return False
        self.operate(index, price, amount)
        return True

    def exit(self, index: int, price: float = NaN, amount: Optional[float] = None) -> bool:
        """Record an exit; returns ``False`` if no position is open."""
        if not self.current_position.is_opened:
            return False
        if amount is None:
            amount = self.current_position.entry.amount
        self.operate(index, price, amount)
        return True

    # ------------------------------------------------------------------ #
    #  Queries                                                            #
    # ------------------------------------------------------------------ #

    def is_closed(self) -> bool:
        """``True`` when no position is currently open."""
        return self.current_position.is_new

    @property
    def position_count(self) -> int:
        return len(self.positions)

    @property
    def last_position(self) -> Optional[Position]:
        return self.positions[-1] if self.positions else None

    def last_trade(self, side: Optional[Side] = None) -> Optional[Trade]:
        for trade in reversed(self.trades):
            if side is None or trade.side == side:
                return trade
        return None

    @property
    def last_entry(self) -> Optional[Trade]:
        return self.last_trade(self.starting_side)

    @property
    def last_exit(self) -> Optional[Trade]:
        return self.last_trade(self.starting_side.complement())
