from glint.fix.engine import Fix, FixEngine, Fixer, FixerRegistry, FixResult, check_git_status
from glint.fix.fixers import BoolCompareFixer, DeprecatedIoutilFixer, InterfaceAnyFixer

__all__ = [
    "Fix",
    "FixEngine",
    "Fixer",
    "FixerRegistry",
    "FixResult",
    "check_git_status",
    "BoolCompareFixer",
    "DeprecatedIoutilFixer",
    "InterfaceAnyFixer",
]
