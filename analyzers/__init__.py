"""
Analyzers package for the RouteWarden route security auditor.
"""

from .pattern_catalog import PatternCatalog, SafeguardDetector, RegexSafeguardDetector, PatternError
from .file_discovery import discover_route_files, RootNotFoundError
from .policy_evaluator import PolicyEvaluator

__all__ = [
    'PatternCatalog', 'SafeguardDetector', 'RegexSafeguardDetector', 'PatternError',
    'discover_route_files', 'RootNotFoundError', 'PolicyEvaluator'
]
