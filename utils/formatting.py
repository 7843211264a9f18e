"""Output formatting utilities for the budget mind map tools.

Provides reusable functions for:
- Formatting currency amounts (THB by default)
- Formatting percentage shares and counts
- Text truncation and term highlighting
- Tabular and sectioned report output for the CLI
"""

from typing import Optional, List, Dict, Any

# Kept in sync with budget_tree.aggregator.UNAVAILABLE
UNAVAILABLE = "—"


def format_amount(value: Optional[float], currency: str = "THB",
                  precision: int = 0) -> str:
    """Format a budget amount with thousands separators and a currency code.

    Args:
        value: Amount (None means "no figure")
        currency: Currency code appended after the number (default: THB)
        precision: Decimal places (default: 0)

    Returns:
        Formatted string like "1,234,567 THB"

    Examples:
        format_amount(1234567) -> "1,234,567 THB"
        format_amount(0) -> "0 THB"
        format_amount(None) -> "—"
    """
    if value is None:
        return UNAVAILABLE
    text = f"{value:,.{precision}f}"
    return f"{text} {currency}" if currency else text


def format_share(share: Optional[str]) -> str:
    """Add a ``%`` sign to a share string from percentage_share().

    Examples:
        format_share("25.00") -> "25.00%"
        format_share("—") -> "—"
    """
    if share is None or share == UNAVAILABLE:
        return UNAVAILABLE
    return f"{share}%"


def format_count(value: Optional[int]) -> str:
    """Format a count with thousands separator.

    Examples:
        format_count(1234567) -> "1,234,567"
        format_count(None) -> "—"
    """
    if value is None:
        return UNAVAILABLE
    return f"{value:,d}"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to maximum length with ellipsis.

    Examples:
        truncate_text("Long text here", 10) -> "Long te..."
        truncate_text("Short", 10) -> "Short"
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def format_path(path) -> str:
    """Render a name path as a breadcrumb.

    Example:
        format_path(("Budget", "Ministry of Finance")) -> "Budget › Ministry of Finance"
    """
    return " › ".join(path)


class TableFormatter:
    """Formats data as aligned tabular output."""

    def __init__(self, columns: List[str], column_widths: Optional[List[int]] = None):
        """Initialize table formatter.

        Args:
            columns: List of column headers
            column_widths: Optional list of column widths (auto-calculated if None)
        """
        self.columns = columns
        self.column_widths = column_widths or [len(col) for col in columns]
        self.rows: List[List[str]] = []
        self.right_align: set[int] = set()

    def add_row(self, values: List[Any]) -> None:
        """Add a row to the table.

        Raises:
            ValueError: If value count doesn't match column count
        """
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} values, got {len(values)}")

        str_values = []
        for i, val in enumerate(values):
            str_val = str(val) if val is not None else UNAVAILABLE
            str_values.append(str_val)
            if len(str_val) > self.column_widths[i]:
                self.column_widths[i] = len(str_val)

        self.rows.append(str_values)

    def _format_row(self, values: List[str], is_header: bool = False) -> str:
        cells = []
        for i, val in enumerate(values):
            width = self.column_widths[i]
            if not is_header and i in self.right_align:
                cells.append(val.rjust(width))
            else:
                cells.append(val.ljust(width))
        return "  ".join(cells).rstrip()

    def to_string(self, show_header: bool = True, show_separator: bool = True) -> str:
        """Format table as multi-line string."""
        lines = []

        if show_header:
            lines.append(self._format_row(self.columns, is_header=True))
            if show_separator:
                lines.append("  ".join("-" * w for w in self.column_widths))

        for row in self.rows:
            lines.append(self._format_row(row))

        return "\n".join(lines)


class ReportFormatter:
    """Formats data as a structured report with sections."""

    def __init__(self, title: str = ""):
        self.title = title
        self.sections: List[Dict[str, Any]] = []

    def add_section(self, heading: str, content: Any, level: int = 1) -> None:
        """Add a section to the report.

        Args:
            heading: Section heading
            content: Section content (string, list, or dict)
            level: Heading level (1-2)
        """
        self.sections.append({
            "heading": heading,
            "content": content,
            "level": level,
        })

    def _format_content(self, content: Any) -> List[str]:
        if isinstance(content, str):
            return [content]
        if isinstance(content, (list, tuple)):
            return [f"  • {item}" for item in content]
        if isinstance(content, dict):
            return [f"  {key}: {value}" for key, value in content.items()]
        return [str(content)]

    def to_string(self) -> str:
        """Format report as multi-line string."""
        lines = []

        if self.title:
            lines.append(self.title)
            lines.append("=" * len(self.title))
            lines.append("")

        for section in self.sections:
            heading = section["heading"]
            if section["level"] == 1:
                lines.append(heading)
                lines.append("-" * len(heading))
            else:
                lines.append(f"  {heading}")
            lines.extend(self._format_content(section["content"]))
            lines.append("")

        return "\n".join(lines)
