"""
Logical combinators.

Evaluation order is part of the contract and is preserved exactly, because
children may have side effects (``JustOnceRule``, trailing stop activation):

* ``AndRule`` / ``OrRule`` short-circuit: the second child is not evaluated
  when the first one already decides the result.
* ``XorRule`` always evaluates both children.
* ``VoteRule`` evaluates children in order and stops once enough votes are in.
* ``ChainRule`` walks its links in order, each link scanning backward from
  the bar where the previous one matched.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional, Tuple

from ruleflow.exceptions import InvalidRuleConfiguration
from ruleflow.models import TradingRecord
from ruleflow.rules.base import Rule, require, require_rule, require_rules
from ruleflow.series import BarSeries


# ---------------------------------------------------------------------------
# Boolean algebra
# ---------------------------------------------------------------------------

class _BinaryRule(Rule):

    def __init__(self, rule1: Rule, rule2: Rule) -> None:
        self.rule1 = require_rule(rule1, "rule1")
        self.rule2 = require_rule(rule2, "rule2")

    def children(self) -> Tuple[Rule, ...]:
        return (self.rule1, self.rule2)

    def _default_name(self) -> str:
        return f"{type(self).__name__}({self.rule1.name},{self.rule2.name})"


class AndRule(_BinaryRule):
    """Satisfied when both rules are satisfied; *rule2* is skipped when *rule1* fails."""

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = self.rule1.is_satisfied(index, trading_record) and self.rule2.is_satisfied(index, trading_record)
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class OrRule(_BinaryRule):
    """Satisfied when either rule is satisfied; *rule2* is skipped when *rule1* holds."""

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = self.rule1.is_satisfied(index, trading_record) or self.rule2.is_satisfied(index, trading_record)
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class XorRule(_BinaryRule):
    """Satisfied when exactly one rule is satisfied (both are always evaluated)."""

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        first = self.rule1.is_satisfied(index, trading_record)
        second = self.rule2.is_satisfied(index, trading_record)
        satisfied = first != second
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class NotRule(Rule):
    """Negation of a rule."""

    def __init__(self, rule: Rule) -> None:
        self.rule = require_rule(rule, "rule")

    def children(self) -> Tuple[Rule, ...]:
        return (self.rule,)

    def _default_name(self) -> str:
        return f"NotRule({self.rule.name})"

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = not self.rule.is_satisfied(index, trading_record)
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class VoteRule(Rule):
    """
    n-of-m vote.

    Satisfied when at least ``required_votes`` of the rules are satisfied.
    Rules are evaluated in order and evaluation stops as soon as the required
    number of votes is reached.
    """

    def __init__(self, required_votes: int, *rules: Rule) -> None:
        self.rules = require_rules(rules)
        if required_votes is None or required_votes < 1:
            raise InvalidRuleConfiguration(f"required_votes must be >= 1, got {required_votes!r}.")
        if required_votes > len(self.rules):
            raise InvalidRuleConfiguration(
                f"required_votes ({required_votes}) exceeds the number of rules ({len(self.rules)})."
            )
        self.required_votes = int(required_votes)

    def children(self) -> Tuple[Rule, ...]:
        return self.rules

    def _default_name(self) -> str:
        return f"VoteRule({self.required_votes}:{','.join(r.name for r in self.rules)})"

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        votes = 0
        for rule in self.rules:
            if rule.is_satisfied(index, trading_record):
                votes += 1
                if votes >= self.required_votes:
                    break
        satisfied = votes >= self.required_votes
        self._trace_is_satisfied(index, satisfied)
        return satisfied


# ---------------------------------------------------------------------------
# Sequencing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChainLink:
    """
    One step of a ``ChainRule``.

    Attributes
    ----------
    rule : Rule
        Condition that must have held.
    threshold : int
        Number of bars the link may look back, measured from the bar where the
        previous link matched (0 = that same bar only).
    """
    rule: Rule
    threshold: int

    def __post_init__(self) -> None:
        require_rule(self.rule, "rule")
        if self.threshold is None or self.threshold < 0:
            raise InvalidRuleConfiguration(f"ChainLink threshold must be >= 0, got {self.threshold!r}.")


class ChainRule(Rule):
    """
    Satisfied when a sequence of conditions occurred in order.

    The initial rule must hold at the index.  Then, for each link in turn, the
    link's rule is searched backward over ``threshold + 1`` bars starting from
    the bar where the previous link matched (the initial rule matches at the
    index itself).  The first match wins and anchors the next link.  A link
    without a match, or running past bar 0, fails the whole chain.

    Examples
    --------
    Initial match at 10, link 1 (threshold 2) matches at 8: link 2 searches
    from 8 backward, not from 10.
    """

    def __init__(self, initial_rule: Rule, *links: ChainLink) -> None:
        self.initial_rule = require_rule(initial_rule, "initial_rule")
        for link in links:
            if not isinstance(link, ChainLink):
                raise InvalidRuleConfiguration(f"links must be ChainLink instances, got {link!r}.")
        self.links: Tuple[ChainLink, ...] = tuple(links)

    def children(self) -> Tuple[Rule, ...]:
        return (self.initial_rule,) + tuple(link.rule for link in self.links)

    def clone(self) -> "ChainRule":
        duplicate = copy.copy(self)
        duplicate.initial_rule = self.initial_rule.clone()
        duplicate.links = tuple(ChainLink(link.rule.clone(), link.threshold) for link in self.links)
        return duplicate

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = self.initial_rule.is_satisfied(index, trading_record)
        anchor = index
        if satisfied:
            for link in self.links:
                match = self._find_backward(link, anchor, trading_record)
                if match is None:
                    satisfied = False
                    break
                anchor = match
        self._trace_is_satisfied(index, satisfied)
        return satisfied

    @staticmethod
    def _find_backward(link: ChainLink, anchor: int, trading_record: Optional[TradingRecord]) -> Optional[int]:
        for offset in range(link.threshold + 1):
            candidate = anchor - offset
            if candidate < 0:
                break
            if link.rule.is_satisfied(candidate, trading_record):
                return candidate
        return None


class BeforeRule(Rule):
    """
    Satisfied when *second* holds now and *first* held earlier without an
    intervening *reset*.

    Scanning backward from the previous bar down to the series' begin index,
    the first bar where *reset* holds fails the rule, the first bar where
    *first* holds satisfies it.  When both hold on the same bar *reset* wins.
    """

    def __init__(self, series: BarSeries, first: Rule, second: Rule, reset: Rule) -> None:
        self.series = require(series, "series")
        self.first = require_rule(first, "first")
        self.second = require_rule(second, "second")
        self.reset_rule = require_rule(reset, "reset")

    def children(self) -> Tuple[Rule, ...]:
        return (self.first, self.second, self.reset_rule)

    def _default_name(self) -> str:
        return f"BeforeRule({self.first.name},{self.second.name},{self.reset_rule.name})"

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = False
        if self.second.is_satisfied(index, trading_record):
            for i in range(index - 1, self.series.begin_index - 1, -1):
                if self.reset_rule.is_satisfied(i, trading_record):
                    break
                if self.first.is_satisfied(i, trading_record):
                    satisfied = True
                    break
        self._trace_is_satisfied(index, satisfied)
        return satisfied


class OrWithThresholdRule(Rule):
    """
    Satisfied when either rule held on one of the ``threshold`` most recent
    bars ending at the index.

    Bars are scanned oldest to newest; *rule2* is only evaluated on a bar where
    *rule1* did not hold.  When fewer than ``threshold`` bars exist
    (``index - threshold + 1 < 0``) the rule is not satisfied.
    """

    def __init__(self, rule1: Rule, rule2: Rule, threshold: int) -> None:
        self.rule1 = require_rule(rule1, "rule1")
        self.rule2 = require_rule(rule2, "rule2")
        if threshold is None or threshold < 1:
            raise InvalidRuleConfiguration(f"threshold must be >= 1, got {threshold!r}.")
        self.threshold = int(threshold)

    def children(self) -> Tuple[Rule, ...]:
        return (self.rule1, self.rule2)

    def _default_name(self) -> str:
        return f"OrWithThresholdRule({self.rule1.name},{self.rule2.name},{self.threshold})"

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        satisfied = False
        start = index - self.threshold + 1
        if start >= 0:
            for i in range(start, index + 1):
                if self.rule1.is_satisfied(i, trading_record) or self.rule2.is_satisfied(i, trading_record):
                    satisfied = True
                    break
        self._trace_is_satisfied(index, satisfied)
        return satisfied


# ---------------------------------------------------------------------------
# One-shot latch
# ---------------------------------------------------------------------------

class JustOnceRule(Rule):
    """
    Satisfied the first time its condition holds, never again afterwards.

    Without a wrapped rule it fires on the first evaluation.  The latch is a
    mutable cell: call ``reset()`` (or ``clone()``) before reusing the rule in
    another backtest.  Not thread-safe.
    """

    def __init__(self, rule: Optional[Rule] = None) -> None:
        self.rule = require_rule(rule, "rule") if rule is not None else None
        self.fired = False

    def children(self) -> Tuple[Rule, ...]:
        return (self.rule,) if self.rule is not None else ()

    def _default_name(self) -> str:
        return f"JustOnceRule({self.rule.name})" if self.rule is not None else "JustOnceRule"

    def _reset_own_state(self) -> None:
        self.fired = False

    def is_satisfied(self, index: int, trading_record: Optional[TradingRecord] = None) -> bool:
        if self.fired:
            satisfied = False
        elif self.rule is None:
            satisfied = True
        else:
            satisfied = self.rule.is_satisfied(index, trading_record)
        if satisfied:
            self.fired = True
        self._trace_is_satisfied(index, satisfied)
        return satisfied
