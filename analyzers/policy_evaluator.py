"""
Policy Evaluator for the route security auditor

Classifies each extracted route as public or protected, decides whether it
is an admin route, and reports the safeguards it is missing.
"""

import logging
from typing import List, Optional

from models import (
    RouteDeclaration, FileContext, RouteEvaluation, Finding, Severity, Safeguard,
    BODY_METHODS, RATE_LIMITED_METHODS
)
from analyzers.pattern_catalog import PatternCatalog


class PolicyRule:
    """Fixed severity and wording for one finding type"""

    def __init__(self, severity: Severity, issue: str, recommendation: str):
        self.severity = severity
        self.issue = issue
        self.recommendation = recommendation

    def finding(self, route: RouteDeclaration) -> Finding:
        return Finding(
            severity=self.severity,
            file=route.source_file,
            route=route.label,
            issue=self.issue,
            recommendation=self.recommendation,
        )


MISSING_AUTHENTICATION = PolicyRule(
    Severity.HIGH,
    'Missing authentication middleware',
    'Add authenticate() middleware or router.use(authenticate) at top of file',
)
ADMIN_MISSING_AUTHORIZATION = PolicyRule(
    Severity.HIGH,
    'Admin route missing authorization middleware',
    'Add requireRole("admin") or authorize() middleware',
)
MISSING_VALIDATION = PolicyRule(
    Severity.MEDIUM,
    'Missing input validation',
    'Add validate() middleware with schema',
)
MISSING_SANITIZATION = PolicyRule(
    Severity.MEDIUM,
    'Missing input sanitization',
    'Add allowOnly() or sanitizeBody() middleware',
)
MISSING_RATE_LIMIT = PolicyRule(
    Severity.LOW,
    'Consider adding rate limiting',
    'Add rateLimit() middleware for brute force protection',
)


class PolicyEvaluator:
    """Evaluates routes against the safeguard policy"""

    def __init__(self, catalog: Optional[PatternCatalog] = None):
        self.logger = logging.getLogger(__name__)
        self.catalog = catalog or PatternCatalog()

    def classify(self, route: RouteDeclaration, context: FileContext) -> RouteEvaluation:
        """
        Classify one route and collect every finding that applies to it.

        Public routes are counted but not checked further. Protected routes
        are checked for authentication, admin authorization, input validation,
        input sanitization and rate limiting, in that order.

        Args:
            route: Declaration produced by the route extractor
            context: State of the file the route was declared in

        Returns:
            RouteEvaluation with the route's classification and findings
        """
        span = route.definition_span
        evaluation = RouteEvaluation(
            route=route,
            has_authentication=context.has_global_authentication
            or self.catalog.has(Safeguard.AUTHENTICATION, span),
            is_public=self.catalog.is_public(route.full_path, route.declared_path),
        )

        if evaluation.is_public:
            self.logger.debug(f"{route.label} is public")
            return evaluation

        findings: List[Finding] = evaluation.findings

        if not evaluation.has_authentication:
            findings.append(MISSING_AUTHENTICATION.finding(route))

        evaluation.is_admin = self.catalog.is_admin(route.full_path, route.method.value)
        evaluation.has_authorization = self.catalog.has(Safeguard.AUTHORIZATION, span)
        if evaluation.is_admin and not evaluation.has_authorization:
            findings.append(ADMIN_MISSING_AUTHORIZATION.finding(route))

        if route.method in BODY_METHODS:
            if not self.catalog.has(Safeguard.VALIDATION, span):
                findings.append(MISSING_VALIDATION.finding(route))
            if not self.catalog.has(Safeguard.SANITIZATION, span):
                findings.append(MISSING_SANITIZATION.finding(route))

        if route.method in RATE_LIMITED_METHODS and not self.catalog.has(Safeguard.RATE_LIMIT, span):
            findings.append(MISSING_RATE_LIMIT.finding(route))

        self.logger.debug(f"{route.label}: {len(findings)} finding(s)")
        return evaluation

    def evaluate_file(self, context: FileContext, routes: List[RouteDeclaration]) -> List[RouteEvaluation]:
        """Classify every route of one file in declaration order"""
        return [self.classify(route, context) for route in routes]
