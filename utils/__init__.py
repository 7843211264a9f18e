"""Shared utilities for the budget mind map tools."""

# Pattern definitions
from utils.patterns import (
    CURRENCY_SYMBOLS,
    FILENAME_UNSAFE,
)

# String utilities
from utils.strings import coerce_number

# Output formatting
from utils.formatting import (
    format_amount,
    format_share,
    format_count,
    format_path,
    truncate_text,
    TableFormatter,
    ReportFormatter,
)

# Configuration
from utils.config import Config, AppConfig

__all__ = [
    # Patterns
    "CURRENCY_SYMBOLS",
    "FILENAME_UNSAFE",
    # Strings
    "coerce_number",
    # Formatting
    "format_amount",
    "format_share",
    "format_count",
    "format_path",
    "truncate_text",
    "TableFormatter",
    "ReportFormatter",
    # Config
    "Config",
    "AppConfig",
]
