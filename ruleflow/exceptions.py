"""
Exceptions thrown by ruleflow package that are specific to this package only
"""


class RuleflowError(Exception):
    """Root of every error raised by the ruleflow package"""
    pass

class InvalidRuleConfiguration(RuleflowError, ValueError):
    """Raised when a rule, indicator or distance model is constructed with invalid arguments"""
    pass

class PositionStateError(RuleflowError):
    """Raised when a trading record or position is operated in a state that does not allow it"""
    pass

class InvalidSeriesData(RuleflowError, ValueError):
    """Raised when bar data passed to a BarSeries is missing columns or has an unsupported type"""
    pass
