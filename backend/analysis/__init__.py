"""
Root-cause analysis exports.
"""

from .resolver import RootCauseResolver, create_root_cause_resolver, parse_diagnosis
from .rules import DEFAULT_RULES, Rule, RuleCatalog, RuleMatch
from .schema import AnalysisMethod, RootCauseResult

__all__ = [
    "RootCauseResolver",
    "create_root_cause_resolver",
    "parse_diagnosis",
    "Rule",
    "RuleCatalog",
    "RuleMatch",
    "DEFAULT_RULES",
    "AnalysisMethod",
    "RootCauseResult",
]
