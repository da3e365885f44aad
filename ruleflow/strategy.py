"""
Trading strategy: an entry rule tree plus an exit rule tree.
"""

from __future__ import annotations

from typing import Optional

from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.models import TradingRecord
from ruleflow.rules.base import Rule, require_rule


class Strategy:
    """
    Pairs an entry rule with an exit rule.

    Parameters
    ----------
    entry_rule : Rule
        Evaluated while no position is open.
    exit_rule : Rule
        Evaluated while a position is open.
    unstable_bars : int
        Number of leading bars during which indicators are still warming up;
        no signal is given for ``index < unstable_bars``.
    name : str | None
        Display name.

    Examples
    --------
    >>> close = ClosePriceIndicator(series)
    >>> strategy = Strategy(OverIndicatorRule(close, 100), StopLossRule(close, 5))
    >>> strategy.should_enter(3)
    True
    """

    def __init__(
        self,
        entry_rule: Rule,
        exit_rule: Rule,
        unstable_bars: int = 0,
        name: Optional[str] = None,
    ) -> None:
        self.entry_rule = require_rule(entry_rule, "entry_rule")
        self.exit_rule = require_rule(exit_rule, "exit_rule")
        if unstable_bars is None or unstable_bars < 0:
            raise InvalidRuleConfiguration(f"unstable_bars must be >= 0, got {unstable_bars!r}.")
        self.unstable_bars = int(unstable_bars)
        self.name = name or f"Strategy({self.entry_rule.name},{self.exit_rule.name})"

    def is_unstable_at(self, index: int) -> bool:
        return index < self.unstable_bars

    def should_enter(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        return not self.is_unstable_at(index) and self.entry_rule.is_satisfied(index, trading_record)

    def should_exit(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        return not self.is_unstable_at(index) and self.exit_rule.is_satisfied(index, trading_record)

    def should_operate(self, index: int, trading_record: TradingRecord) -> bool:
        """Entry check when flat, exit check when a position is open."""
        position = trading_record.current_position
        if position.is_new:
            return self.should_enter(index, trading_record)
        if position.is_opened:
            return self.should_exit(index, trading_record)
        return False

    def reset(self) -> None:
        """Clear the evaluation state of both rule trees."""
        self.entry_rule.reset()
        self.exit_rule.reset()

    def clone(self) -> "Strategy":
        return Strategy(self.entry_rule.clone(), self.exit_rule.clone(), self.unstable_bars, self.name)

    def __repr__(self) -> str:
        return f"<{self.name}>"
