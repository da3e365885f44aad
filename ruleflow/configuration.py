# Package-wide defaults. Everything here is a plain module constant so it can be
# read at import time by the modules that need it:
#
#     - Price arithmetic: percentages are expressed on a 0-100 scale, so the
#     percentage helpers divide by HUNDRED.
#
#     - Lookback windows: trailing exit rules default to an unbounded lookback,
#     which in practice means "every bar since the entry".
#
#     - DataFrame ingestion: BarSeries.from_frame expects the column names below
#     (same capitalised convention used across our tick and bar data).
#
#     - Logging: the level is taken once from the RULEFLOW_LOG_LEVEL environment
#     variable and applied by logging_utils.configure_logging.


import os
import sys


HUNDRED                   = 100.0
UNBOUNDED_BAR_COUNT       = sys.maxsize
DEFAULT_ATR_BAR_COUNT     = 14

DATETIME_COLUMN           = 'Datetime'
OPEN_COLUMN               = 'Open'
HIGH_COLUMN               = 'High'
LOW_COLUMN                = 'Low'
CLOSE_COLUMN              = 'Close'
VOLUME_COLUMN             = 'Volume'
REQUIRED_BAR_COLUMNS      = (DATETIME_COLUMN, OPEN_COLUMN, HIGH_COLUMN, LOW_COLUMN, CLOSE_COLUMN)

PACKAGE_LOGGER_NAME       = 'ruleflow'
TRACE_LOGGER_NAME         = 'ruleflow.rules'
LOG_FORMAT                = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'
LOG_LEVEL                 = os.getenv('RULEFLOW_LOG_LEVEL', 'WARNING').upper()
