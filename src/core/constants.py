"""Core application constants."""

from decimal import Decimal

# Time constants
MILLISECONDS_PER_SECOND = 1000
MONTHS_PER_YEAR = 12

# Monetary amounts are stored as NUMERIC(15, 2)
CENT = Decimal("0.01")
MONEY_PRECISION = 15
MONEY_SCALE = 2

# Security and redaction
REDACTED = "[REDACTED]"
