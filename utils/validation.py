"""Dataset validation utilities for the budget mind map tools.

Provides reusable pieces for:
- Collecting validation issues with a severity
- Running a registry of named checks over a canonical budget tree
- Reconciliation checks (explicit totals vs. the sum of their children)
- Simple value predicates

None of these checks reject a dataset; they report on it.  Explicit values
stay authoritative even when a check flags them.
"""

from typing import List, Dict, Any, Callable, Optional

from budget_tree.aggregator import node_totals
from budget_tree.index import walk
from budget_tree.models import BudgetNode, path_to_str


class ValidationIssue:
    """Represents a single validation issue found during checks."""

    def __init__(self, check_name: str, severity: str, detail: str,
                 sample: Optional[Any] = None, count: int = 1):
        """Initialize a validation issue.

        Args:
            check_name: Name of the check that found this issue
            severity: Issue severity ('error', 'warning', 'info')
            detail: Human-readable description of the issue
            sample: Example value (usually a node path) that triggered the issue
            count: Number of affected nodes
        """
        self.check_name = check_name
        self.severity = severity
        self.detail = detail
        self.sample = sample
        self.count = count

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "check": self.check_name,
            "severity": self.severity,
            "detail": self.detail,
            "sample": str(self.sample) if self.sample else None,
            "count": self.count,
        }

    def __repr__(self) -> str:
        return (f"ValidationIssue(check={self.check_name}, severity={self.severity}, "
                f"count={self.count})")


class ValidationResult:
    """Collects and reports on validation check results."""

    def __init__(self):
        self.issues: List[ValidationIssue] = []
        self.passed_checks: List[str] = []
        self.failed_checks: List[str] = []

    def add_issue(self, check_name: str, severity: str, detail: str,
                  sample: Optional[Any] = None, count: int = 1) -> None:
        """Add a validation issue."""
        self.issues.append(ValidationIssue(check_name, severity, detail, sample, count))

    def mark_check_passed(self, check_name: str) -> None:
        self.passed_checks.append(check_name)

    def mark_check_failed(self, check_name: str) -> None:
        self.failed_checks.append(check_name)

    def get_issues_by_severity(self, severity: str) -> List[ValidationIssue]:
        """Get all issues of a specific severity ('error', 'warning', 'info')."""
        return [i for i in self.issues if i.severity == severity]

    def error_count(self) -> int:
        return len(self.get_issues_by_severity("error"))

    def warning_count(self) -> int:
        return len(self.get_issues_by_severity("warning"))

    def info_count(self) -> int:
        return len(self.get_issues_by_severity("info"))

    def is_valid(self) -> bool:
        """Check if validation passed (no errors)."""
        return self.error_count() == 0

    def summary_text(self) -> str:
        """Generate human-readable validation summary."""
        lines = []
        lines.append("Validation Summary:")
        lines.append(f"  Passed Checks: {len(self.passed_checks)}")
        lines.append(f"  Failed Checks: {len(self.failed_checks)}")
        lines.append(f"  Issues: {len(self.issues)}")
        lines.append(f"    - Errors: {self.error_count()}")
        lines.append(f"    - Warnings: {self.warning_count()}")
        lines.append(f"    - Info: {self.info_count()}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "passed_checks": self.passed_checks,
            "failed_checks": self.failed_checks,
            "issues": [i.to_dict() for i in self.issues],
            "summary": {
                "total_checks": len(self.passed_checks) + len(self.failed_checks),
                "passed": len(self.passed_checks),
                "failed": len(self.failed_checks),
                "issues": len(self.issues),
                "errors": self.error_count(),
                "warnings": self.warning_count(),
                "info": self.info_count(),
            }
        }


class ValidationRegistry:
    """Manages a collection of validation check functions."""

    def __init__(self):
        self.checks: Dict[str, Callable[[BudgetNode], List[ValidationIssue]]] = {}

    def register(self, name: str, check_fn: Callable) -> None:
        """Register a check: a function taking the root and returning issues."""
        self.checks[name] = check_fn

    def run_all(self, root: BudgetNode,
                skip_checks: Optional[List[str]] = None) -> ValidationResult:
        """Run all registered checks against *root*.

        A check that raises is recorded as a failed check with an error
        issue; the remaining checks still run.
        """
        skip = skip_checks or []
        result = ValidationResult()

        for check_name, check_fn in self.checks.items():
            if check_name in skip:
                continue

            try:
                issues = check_fn(root)
                if issues:
                    for issue in issues:
                        result.add_issue(issue.check_name, issue.severity,
                                         issue.detail, issue.sample, issue.count)
                    result.mark_check_failed(check_name)
                else:
                    result.mark_check_passed(check_name)
            except Exception as e:
                result.add_issue(
                    check_name, "error",
                    f"Check raised exception: {str(e)[:100]}"
                )
                result.mark_check_failed(check_name)

        return result


# ── Tree checks ───────────────────────────────────────────────────────────────

# Explicit totals are compared to the children's sum with this tolerance
RECONCILE_TOLERANCE = 0.5


def check_explicit_totals(root: BudgetNode) -> List[ValidationIssue]:
    """Flag explicit values that differ from the sum of their children.

    Only nodes whose children carry at least one figure are compared; a
    parent with all-blank children has nothing to reconcile against.
    """
    totals = node_totals(root)
    mismatched = []
    for node, path in walk(root):
        if node.value is None or not node.children:
            continue
        child_totals = [totals[id(c)] for c in node.children]
        if all(t is None for t in child_totals):
            continue
        derived = sum(t or 0.0 for t in child_totals)
        if abs(derived - node.value) > RECONCILE_TOLERANCE:
            mismatched.append((path, node.value, derived))
    if not mismatched:
        return []
    path, explicit, derived = mismatched[0]
    return [ValidationIssue(
        "explicit_totals", "warning",
        f"{len(mismatched)} node(s) have an explicit value that differs from "
        f"their children's sum (first: {explicit:,.0f} vs {derived:,.0f})",
        sample=path_to_str(path), count=len(mismatched),
    )]


def check_duplicate_siblings(root: BudgetNode) -> List[ValidationIssue]:
    """Flag siblings sharing a name; only the first is reachable by path."""
    duplicates = []
    for node, path in walk(root):
        seen = set()
        for child in node.children:
            if child.name in seen:
                duplicates.append(path + (child.name,))
            seen.add(child.name)
    if not duplicates:
        return []
    return [ValidationIssue(
        "duplicate_siblings", "warning",
        f"{len(duplicates)} node(s) share a name with an earlier sibling and "
        "cannot be reached by path",
        sample=path_to_str(duplicates[0]), count=len(duplicates),
    )]


def check_blank_names(root: BudgetNode) -> List[ValidationIssue]:
    """Flag nodes whose name is empty or whitespace."""
    blanks = [path for node, path in walk(root) if not is_valid_name(node.name)]
    if not blanks:
        return []
    return [ValidationIssue(
        "blank_names", "warning",
        f"{len(blanks)} node(s) have no name",
        sample=path_to_str(blanks[0]), count=len(blanks),
    )]


def check_negative_values(root: BudgetNode) -> List[ValidationIssue]:
    """Flag explicit values outside the plausible amount range."""
    bad = [path for node, path in walk(root)
           if node.value is not None and not is_valid_amount(node.value)]
    if not bad:
        return []
    return [ValidationIssue(
        "amount_range", "warning",
        f"{len(bad)} node(s) have a negative or implausibly large value",
        sample=path_to_str(bad[0]), count=len(bad),
    )]


def check_missing_values(root: BudgetNode) -> List[ValidationIssue]:
    """Report leaves without a figure; they count as 0 in their parent's sum."""
    missing = [path for node, path in walk(root)
               if node.value is None and not node.children]
    if not missing:
        return []
    return [ValidationIssue(
        "missing_values", "info",
        f"{len(missing)} leaf node(s) have no value and contribute 0",
        sample=path_to_str(missing[0]), count=len(missing),
    )]


def build_tree_registry() -> ValidationRegistry:
    """Return a registry with every built-in tree check registered."""
    registry = ValidationRegistry()
    registry.register("explicit_totals", check_explicit_totals)
    registry.register("duplicate_siblings", check_duplicate_siblings)
    registry.register("blank_names", check_blank_names)
    registry.register("amount_range", check_negative_values)
    registry.register("missing_values", check_missing_values)
    return registry


def validate_tree(root: BudgetNode,
                  skip_checks: Optional[List[str]] = None) -> ValidationResult:
    """Run all built-in checks against a canonical tree."""
    return build_tree_registry().run_all(root, skip_checks=skip_checks)


def is_valid_amount(value: float) -> bool:
    """Check if value is a plausible budget amount.

    Valid amounts are non-negative numbers up to 1e15 (a quadrillion).
    """
    if not isinstance(value, (int, float)):
        return False
    if isinstance(value, bool):  # bool is subclass of int
        return False
    return 0 <= value <= 1e15


def is_valid_name(name: str) -> bool:
    """Check if a node name is a non-blank string."""
    return isinstance(name, str) and bool(name.strip())
