"""Pre-compiled regex patterns for the budget mind map tools.

All patterns are compiled once at module import.

Usage:
    from utils.patterns import FILENAME_UNSAFE

    FILENAME_UNSAFE.sub("_", path_str)
"""

import re

# Currency symbols stripped during numeric conversion (incl. Thai baht)
CURRENCY_SYMBOLS = re.compile(r'[\$€£¥₹₽฿]')

# Characters replaced when turning a note path into a download filename
FILENAME_UNSAFE = re.compile(r'[<>:"/\\|?*]')
