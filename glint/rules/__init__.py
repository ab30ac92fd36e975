from glint.fix.fixers import BoolCompareFixer, DeprecatedIoutilFixer, InterfaceAnyFixer
from glint.rules.architecture import DeepNestingRule, LongFunctionRule, TooManyParamsRule
from glint.rules.base import BaseRule, Rule
from glint.rules.duplication import CrossFileDuplicateRule, DuplicateBlockRule, DuplicateIndex
from glint.rules.naming import NamingConventionsRule
from glint.rules.patterns import BoolCompareRule, DeprecatedIoutilRule
from glint.rules.registry import RuleEntry, RuleInfo, RuleRegistry
from glint.rules.typesafety import InterfaceAnyRule


def default_registry(index: DuplicateIndex | None = None) -> RuleRegistry:
    """A fresh registry holding every built-in rule, paired with its fixer where one exists."""
    registry = RuleRegistry()
    registry.register(LongFunctionRule())
    registry.register(DeepNestingRule())
    registry.register(TooManyParamsRule())
    registry.register(DuplicateBlockRule())
    registry.register(CrossFileDuplicateRule(index))
    registry.register(NamingConventionsRule())
    registry.register(BoolCompareRule(), BoolCompareFixer())
    registry.register(DeprecatedIoutilRule(), DeprecatedIoutilFixer())
    registry.register(InterfaceAnyRule(), InterfaceAnyFixer())
    return registry


__all__ = [
    "BaseRule",
    "BoolCompareRule",
    "CrossFileDuplicateRule",
    "DeepNestingRule",
    "DeprecatedIoutilRule",
    "DuplicateBlockRule",
    "DuplicateIndex",
    "InterfaceAnyRule",
    "LongFunctionRule",
    "NamingConventionsRule",
    "Rule",
    "RuleEntry",
    "RuleInfo",
    "RuleRegistry",
    "TooManyParamsRule",
    "default_registry",
]
