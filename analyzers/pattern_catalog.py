"""
Pattern Catalog for the route security auditor

Named safeguard detectors plus the policy tables (public allowlist and
admin route patterns) enforced by the policy evaluator.
"""

import re
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Pattern, Sequence

from models import Safeguard, ConfigurationError

logger = logging.getLogger(__name__)

# Conventional middleware identifiers for each safeguard
SAFEGUARD_PATTERNS: Dict[Safeguard, str] = {
    Safeguard.AUTHENTICATION: r'authenticate|isAuthenticated|requireAuth',
    Safeguard.AUTHORIZATION: r'authorize|requireRole|requirePermission|checkRole',
    Safeguard.RATE_LIMIT: r'rateLimit|limiter',
    Safeguard.VALIDATION: r'validate\(',
    Safeguard.SANITIZATION: r'allowOnly|sanitize',
}

# Routes that should be public
PUBLIC_ALLOWLIST: List[str] = [
    '/api/v1/auth/register',
    '/api/v1/auth/login',
    '/api/v1/auth/refresh',
    '/api/v1/auth/verify-email',
    '/api/v1/auth/forgot-password',
    '/api/v1/auth/reset-password',
    '/api/v1/health',
    '/api/v1/healthcheck',
]

# Routes that require admin/elevated privileges
ADMIN_PATTERNS: List[str] = [
    r'/admin/',
    r'/users/:?\w+',  # operations on other users, '/users/:id'
    r'DELETE.*users',
    r'/analytics',
    r'/reports/',
    r'/export',
]

ALLOWLIST_MATCH_MODES = ('segment', 'substring')


class PatternError(ConfigurationError):
    """Raised when a catalog pattern cannot be compiled"""
    pass


class SafeguardDetector(ABC):
    """
    Recognises one safeguard inside a route's definition span.
    The policy evaluator only talks to this interface.
    """

    def __init__(self, safeguard: Safeguard):
        self.safeguard = safeguard

    @abstractmethod
    def detect(self, text: str) -> bool:
        """
        Check whether the safeguard appears in the given source text.

        Args:
            text: Definition span or router registration arguments

        Returns:
            True if the safeguard is present
        """
        pass


class RegexSafeguardDetector(SafeguardDetector):
    """Expression based detector matching conventional middleware names"""

    def __init__(self, safeguard: Safeguard, pattern: str):
        super().__init__(safeguard)
        self.pattern = _compile(pattern, f"{safeguard.value} detector")

    def detect(self, text: str) -> bool:
        return bool(text) and self.pattern.search(text) is not None

    def __repr__(self) -> str:
        return f"RegexSafeguardDetector({self.safeguard.value!r}, {self.pattern.pattern!r})"


def _compile(pattern: str, label: str) -> Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError(f"Invalid regex for {label} '{pattern}': {e}")


class PatternCatalog:
    """Safeguard detectors and policy tables used to audit routes"""

    def __init__(self, detectors: Optional[Dict[Safeguard, SafeguardDetector]] = None,
                 public_allowlist: Optional[Sequence[str]] = None,
                 admin_patterns: Optional[Sequence[str]] = None,
                 allowlist_match: str = 'segment'):
        if allowlist_match not in ALLOWLIST_MATCH_MODES:
            raise PatternError(f"Unknown allowlist match mode: {allowlist_match}")

        self.detectors: Dict[Safeguard, SafeguardDetector] = {
            safeguard: RegexSafeguardDetector(safeguard, pattern)
            for safeguard, pattern in SAFEGUARD_PATTERNS.items()
        }
        if detectors:
            self.detectors.update(detectors)

        self.public_allowlist = list(PUBLIC_ALLOWLIST if public_allowlist is None else public_allowlist)
        self.admin_patterns = [
            _compile(pattern, "admin route pattern")
            for pattern in (ADMIN_PATTERNS if admin_patterns is None else admin_patterns)
        ]
        self.allowlist_match = allowlist_match

    @classmethod
    def from_config(cls, config) -> 'PatternCatalog':
        """
        Build a catalog from an AuditConfig.

        Safeguard patterns in the config are keyed by safeguard name
        ('authentication', 'rate_limit', ...); missing keys keep the defaults.
        """
        detectors = {}
        for name, pattern in (config.safeguard_patterns or {}).items():
            try:
                safeguard = Safeguard(name)
            except ValueError:
                raise PatternError(f"Unknown safeguard in configuration: {name}")
            detectors[safeguard] = RegexSafeguardDetector(safeguard, pattern)

        return cls(
            detectors=detectors,
            public_allowlist=config.public_allowlist,
            admin_patterns=config.admin_patterns,
            allowlist_match=config.allowlist_match,
        )

    def has(self, safeguard: Safeguard, text: str) -> bool:
        """Check whether a safeguard is present in the text"""
        return self.detectors[safeguard].detect(text)

    def is_public(self, full_path: str, declared_path: str) -> bool:
        """Check the full and declared path against the public allowlist"""
        for allowed in self.public_allowlist:
            if self._allowlist_matches(allowed, full_path) or self._allowlist_matches(allowed, declared_path):
                logger.debug(f"Allowlist entry {allowed} matched {full_path}")
                return True
        return False

    def _allowlist_matches(self, allowed: str, path: str) -> bool:
        if self.allowlist_match == 'substring':
            return allowed in path

        # Whole-segment prefix: '/api/v1/health' covers '/api/v1/health/db'
        # but not '/api/v1/healthy'
        allowed = allowed.rstrip('/') or '/'
        return path == allowed or path.startswith(allowed + '/')

    def is_admin(self, full_path: str, method: Optional[str] = None) -> bool:
        """
        Check whether the route addresses an elevated-privilege operation.

        Patterns are matched against '<METHOD> <path>' when the method is
        known so method-qualified entries such as 'DELETE.*users' apply.
        """
        subject = f"{method} {full_path}" if method else full_path
        return any(pattern.search(subject) for pattern in self.admin_patterns)
