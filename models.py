#!/usr/bin/env python3
"""
Data models for RouteWarden route security auditor
Defines all data structures used throughout the application
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple
from enum import Enum
from pydantic import BaseModel, ConfigDict

class HTTPMethod(Enum):
    """Route registration methods recognised by the extractor"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    USE = "USE"

class Severity(Enum):
    """Finding severity levels"""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

class Safeguard(Enum):
    """Cross-cutting protections audited on every route"""
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    SANITIZATION = "sanitization"

# Methods that carry a request body and therefore need validation/sanitization
BODY_METHODS = (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)

# Methods worth throttling against brute force
RATE_LIMITED_METHODS = (HTTPMethod.POST, HTTPMethod.DELETE)

@dataclass(frozen=True)
class RouteDeclaration:
    """One endpoint registration discovered in a route file"""
    method: HTTPMethod
    declared_path: str
    full_path: str
    source_file: str
    definition_span: str  # search window for safeguards, not exported
    line_number: int = 1

    @property
    def label(self) -> str:
        """Route label used in findings, e.g. 'GET /api/v1/users'"""
        return f"{self.method.value} {self.full_path}"

@dataclass
class FileContext:
    """Per-file state shared by every route declared in that file"""
    source_file: str
    has_global_authentication: bool = False

class Finding(BaseModel):
    """A single policy violation or advisory"""
    model_config = ConfigDict(frozen=True)

    severity: Severity
    file: str
    route: str
    issue: str
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for export"""
        return self.model_dump(mode="json")

@dataclass
class RouteEvaluation:
    """Classification outcome for one route"""
    route: RouteDeclaration
    is_public: bool = False
    is_admin: bool = False
    has_authentication: bool = False
    has_authorization: bool = False
    findings: List[Finding] = field(default_factory=list)

@dataclass
class FileAuditResult:
    """Partial scan result for a single route file"""
    source_file: str
    context: Optional[FileContext] = None
    evaluations: List[RouteEvaluation] = field(default_factory=list)
    error: Optional[str] = None  # read failure, file skipped

@dataclass
class ScanResult:
    """Complete audit results"""
    total_routes: int = 0
    protected_routes: int = 0
    public_routes: int = 0
    admin_routes_with_authorization: int = 0
    issues: List[Finding] = field(default_factory=list)
    warnings: List[Finding] = field(default_factory=list)
    recommendations: List[Finding] = field(default_factory=list)
    files_scanned: int = 0
    skipped_files: List[Tuple[str, str]] = field(default_factory=list)
    file_results: List[FileAuditResult] = field(default_factory=list)

    def record(self, evaluation: RouteEvaluation):
        """Add one classified route to the counters and severity buckets."""
        self.total_routes += 1

        if evaluation.is_public:
            self.public_routes += 1
            return

        self.protected_routes += 1
        if evaluation.is_admin and evaluation.has_authorization:
            self.admin_routes_with_authorization += 1

        buckets = {
            Severity.HIGH: self.issues,
            Severity.MEDIUM: self.warnings,
            Severity.LOW: self.recommendations,
        }
        for finding in evaluation.findings:
            buckets[finding.severity].append(finding)

    def merge(self, file_result: FileAuditResult):
        """Fold a per-file partial result into this scan result."""
        self.file_results.append(file_result)

        if file_result.error is not None:
            self.skipped_files.append((file_result.source_file, file_result.error))
            return

        self.files_scanned += 1
        for evaluation in file_result.evaluations:
            self.record(evaluation)

    @property
    def passed(self) -> bool:
        """Verdict: only HIGH severity issues fail the audit"""
        return len(self.issues) == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def get_summary(self) -> Dict[str, Any]:
        """Get scan summary statistics"""
        return {
            'total_routes': self.total_routes,
            'protected_routes': self.protected_routes,
            'public_routes': self.public_routes,
            'admin_routes_with_authorization': self.admin_routes_with_authorization,
            'issues': len(self.issues),
            'warnings': len(self.warnings),
            'recommendations': len(self.recommendations),
            'files_scanned': self.files_scanned,
            'skipped_files': len(self.skipped_files),
            'passed': self.passed,
        }

class RouteAuditError(Exception):
    """Base class for fatal auditor errors"""
    pass

class ConfigurationError(RouteAuditError):
    """Raised when configuration files or patterns are invalid"""
    pass
