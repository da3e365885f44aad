"""
Rule contract and stop-price model interfaces.

Every rule implements a single method:

.. code-block:: python

    def is_satisfied(self, index, trading_record=None) -> bool

A strategy holds two rule trees (entry and exit).  On each bar the runtime
calls ``is_satisfied`` on the root; combinators recurse into their children
and leaf / exit-price rules read indicators and the trading record directly.
Evaluation is a synchronous tree walk with no callbacks into the runtime.

Undefined conditions (no trading record, no open position, NaN indicator
values, insufficient history) always yield ``False``; they are never raised.

State and threading
~~~~~~~~~~~~~~~~~~~
Most rules are immutable configuration.  A few own a small mutable cell that
evaluation updates (``JustOnceRule``'s latch, the trailing stop-loss
activation level).  Such instances are **not** thread-safe and must not be
shared between concurrently running strategies: use ``clone()`` to get an
independent tree, and ``reset()`` to reuse a tree for a new backtest.

Tracing
~~~~~~~
Each evaluation is reported at DEBUG level as ``"<name>#is_satisfied(<index>): <bool>"``
on the ``ruleflow.rules`` logger.  ``with_trace_logger`` routes a whole tree
to another logger when called on its root.
"""

from __future__ import annotations

import abc
import copy
import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Tuple

from ruleflow.configuration import TRACE_LOGGER_NAME
from ruleflow.exceptions import InvalidRuleConfiguration

if TYPE_CHECKING:  # pragma: no cover
    from ruleflow.models import Position, TradingRecord
    from ruleflow.series import BarSeries


class Rule(abc.ABC):
    """
    Base class of every trading rule.

    Subclasses implement ``is_satisfied`` and call ``_trace_is_satisfied``
    before returning.  Composites override ``children`` so that ``reset``,
    ``clone`` and ``with_trace_logger`` reach the whole tree.
    """

    trace_logger: logging.Logger = logging.getLogger(TRACE_LOGGER_NAME)

    _custom_name: Optional[str] = None

    @abc.abstractmethod
    def is_satisfied(self, index: int, trading_record: Optional["TradingRecord"] = None) -> bool:
        ...

    # ------------------------------------------------------------------ #
    #  Naming                                                             #
    # ------------------------------------------------------------------ #

    @property
    def name(self) -> str:
        if self._custom_name:
            return self._custom_name
        return self._default_name()

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self._custom_name = value.strip() if value and value.strip() else None

    def _default_name(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<{self.name}>"

    # ------------------------------------------------------------------ #
    #  Tree helpers                                                       #
    # ------------------------------------------------------------------ #

    def children(self) -> Tuple["Rule", ...]:
        """Direct sub-rules (empty for leaf rules)."""
        return ()

    def reset(self) -> None:
        """Clear mutable evaluation state of this rule and all its descendants."""
        self._reset_own_state()
        for child in self.children():
            child.reset()

    def clone(self) -> "Rule":
        """
        Independent copy of the rule tree with its state reset.

        Child rules are cloned recursively; indicators are shared since rules
        never mutate them.
        """
        duplicate = copy.copy(self)
        for attr, value in vars(self).items():
            if isinstance(value, Rule):
                setattr(duplicate, attr, value.clone())
            elif isinstance(value, (list, tuple)) and value and all(isinstance(v, Rule) for v in value):
                setattr(duplicate, attr, type(value)(v.clone() for v in value))
        duplicate._reset_own_state()
        return duplicate

    def _reset_own_state(self) -> None:
        """Hook for rules owning mutable state; children are handled by ``reset``."""
        pass

    def with_trace_logger(self, logger: logging.Logger) -> "Rule":
        """Route trace output of this rule and every descendant to *logger*."""
        self.trace_logger = logger
        for child in self.children():
            child.with_trace_logger(logger)
        return self

    def _trace_is_satisfied(self, index: int, satisfied: bool, **details: Any) -> None:
        logger = self.trace_logger
        if logger.isEnabledFor(logging.DEBUG):
            if details:
                extra = ", ".join(f"{k}={v}" for k, v in details.items())
                logger.debug("%s#is_satisfied(%d): %s (%s)", self.name, index, satisfied, extra)
            else:
                logger.debug("%s#is_satisfied(%d): %s", self.name, index, satisfied)

    # ------------------------------------------------------------------ #
    #  Rule algebra                                                       #
    # ------------------------------------------------------------------ #

    def and_(self, other: "Rule") -> "Rule":
        from ruleflow.rules.combinators import AndRule
        return AndRule(self, other)

    def or_(self, other: "Rule") -> "Rule":
        from ruleflow.rules.combinators import OrRule
        return OrRule(self, other)

    def xor(self, other: "Rule") -> "Rule":
        from ruleflow.rules.combinators import XorRule
        return XorRule(self, other)

    def negation(self) -> "Rule":
        from ruleflow.rules.combinators import NotRule
        return NotRule(self)

    __and__ = and_
    __or__ = or_
    __xor__ = xor
    __invert__ = negation


# ---------------------------------------------------------------------------
# Stop-price models
# ---------------------------------------------------------------------------

class StopPriceModel(abc.ABC):
    """
    Reports the stop price a rule would use for a position, independent of
    whether the rule is currently satisfied.
    """

    @abc.abstractmethod
    def stop_price(self, series: "BarSeries", position: "Position") -> Optional[float]:
        """
        Initial stop price at the position's entry.

        Returns ``None`` when the price cannot be derived (no position, no
        entry, NaN entry price or NaN threshold).  Callers must treat ``None``
        as unknown, not as zero.
        """


class StopLossPriceModel(StopPriceModel):
    """Implemented by every stop-loss rule."""


class StopGainPriceModel(StopPriceModel):
    """Implemented by every stop-gain rule."""


# ---------------------------------------------------------------------------
# Argument validation shared by rule constructors
# ---------------------------------------------------------------------------

def require(value: Any, name: str) -> Any:
    if value is None:
        raise InvalidRuleConfiguration(f"{name} must not be None.")
    return value


def require_rules(rules: Iterable[Any], name: str = "rules") -> Tuple[Rule, ...]:
    rules = tuple(rules)
    if not rules:
        raise InvalidRuleConfiguration(f"{name} must contain at least one rule.")
    for rule in rules:
        if not isinstance(rule, Rule):
            raise InvalidRuleConfiguration(f"{name} must only contain rules, got {rule!r}.")
    return rules


def require_rule(rule: Any, name: str) -> Rule:
    if not isinstance(rule, Rule):
        raise InvalidRuleConfiguration(f"{name} must be a rule, got {rule!r}.")
    return rule


def open_position(trading_record: Optional["TradingRecord"]) -> Optional["Position"]:
    """The record's current position when it is open, else ``None``."""
    if trading_record is None:
        return None
    position = trading_record.current_position
    return position if position.is_opened else None
