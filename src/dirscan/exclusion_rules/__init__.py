"""Exclusion rules for filtering files and directories."""

from .ignore_file_loader import IgnoreFileLoader
from .pattern_rules import PatternRule, RuleSet, compile_rule
from .policy import ExclusionPolicy, ExclusionVerdict

__all__ = [
    "ExclusionPolicy",
    "ExclusionVerdict",
    "IgnoreFileLoader",
    "PatternRule",
    "RuleSet",
    "compile_rule",
]
