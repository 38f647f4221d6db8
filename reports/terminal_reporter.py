"""
Terminal report for the route security auditor

Renders the per-file scan trace, the summary, the severity blocks and the
final verdict through a rich Console.
"""

from typing import List, Optional

from rich.console import Console
from rich.text import Text

from models import ScanResult, FileAuditResult, RouteEvaluation, Finding
from analyzers.policy_evaluator import MISSING_VALIDATION, MISSING_SANITIZATION

BANNER = "=" * 40

class TerminalReporter:
    """Human readable audit report"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _line(self, *parts):
        """Print one line; parts are plain strings or (text, style) pairs."""
        # Text renderables bypass markup and emoji parsing, so route paths
        # like '/users/[id]' or '/:id:' print verbatim
        self.console.print(Text.assemble(*parts), soft_wrap=True)

    def render_start(self):
        self._line(("Starting endpoint security audit...", "bold"))
        self._line()

    def render(self, result: ScanResult, verbose: bool = False):
        """
        Render the complete report.

        Args:
            result: Aggregated scan result
            verbose: Include the LOW severity recommendations block
        """
        self.render_trace(result)
        self.render_summary(result)
        self._render_findings("CRITICAL ISSUES", "red", result.issues, "Fix")
        self._render_findings("WARNINGS", "yellow", result.warnings, "Recommendation")
        if verbose:
            self.render_recommendations(result.recommendations)
        self.render_skipped(result)
        self.render_verdict(result)

    def render_trace(self, result: ScanResult):
        """Per-file progress lines in scan order"""
        for file_result in result.file_results:
            self._render_file(file_result)

    def _render_file(self, file_result: FileAuditResult):
        self._line((f"Scanning: {file_result.source_file}", "cyan"))

        if file_result.error is not None:
            self._line("  ", ("✗", "yellow"), f" Skipped: {file_result.error}")
        else:
            for evaluation in file_result.evaluations:
                self._render_route(evaluation)

        self._line()

    def _render_route(self, evaluation: RouteEvaluation):
        route = evaluation.route
        label = f"{route.method.value} {route.declared_path}"

        if evaluation.is_public:
            self._line("  ", ("✓", "green"), f" {label} - Public (allowed)")
            return

        if evaluation.has_authentication:
            self._line("  ", ("✓", "green"), f" {label} - Authenticated")
        else:
            self._line("  ", ("✗", "red"), f" {label} - ", ("Missing authentication", "red"))

        if evaluation.is_admin:
            if evaluation.has_authorization:
                self._line("    ", ("i", "cyan"), "  Admin route with authorization")
            else:
                self._line("    ", ("⚠", "red"), "  Admin route without authorization")

        issues = {finding.issue for finding in evaluation.findings}
        if MISSING_VALIDATION.issue in issues:
            self._line("    ", ("⚠", "yellow"), "  No input validation detected")
        if MISSING_SANITIZATION.issue in issues:
            self._line("    ", ("⚠", "yellow"), "  No input sanitization detected")

    def render_summary(self, result: ScanResult):
        self._line((BANNER, "bold cyan"))
        self._line(("Endpoint Security Audit Report", "bold cyan"))
        self._line((BANNER, "bold cyan"))
        self._line()

        self._line(("Summary:", "bold"))
        self._line(f"  Total Routes: {result.total_routes}")
        self._line(f"  Protected Routes: {result.protected_routes}")
        self._line(f"  Public Routes: {result.public_routes}")
        self._line(f"  Admin Routes: {result.admin_routes_with_authorization}")
        self._line(f"  Issues Found: {len(result.issues)}")
        self._line(f"  Warnings: {len(result.warnings)}")
        self._line(f"  Recommendations: {len(result.recommendations)}")
        if result.skipped_files:
            self._line(f"  Skipped Files: {len(result.skipped_files)}")
        self._line()

    def _render_findings(self, title: str, color: str, findings: List[Finding], advice_label: str):
        if not findings:
            return

        self._line((f"{title} ({len(findings)}):", f"bold {color}"))
        for index, finding in enumerate(findings, 1):
            self._line()
            self._line(f"{index}. ", (finding.severity.value, color), f" - {finding.route}")
            self._line(f"   File: {finding.file}")
            self._line(f"   Issue: {finding.issue}")
            self._line(f"   {advice_label}: {finding.recommendation}")
        self._line()

    def render_recommendations(self, recommendations: List[Finding]):
        if not recommendations:
            return

        self._line((f"RECOMMENDATIONS ({len(recommendations)}):", "bold"))
        for index, finding in enumerate(recommendations, 1):
            self._line()
            self._line(f"{index}. {finding.route}")
            self._line(f"   {finding.recommendation}")
        self._line()

    def render_skipped(self, result: ScanResult):
        if not result.skipped_files:
            return

        self._line((f"SKIPPED FILES ({len(result.skipped_files)}):", "bold yellow"))
        for source_file, reason in result.skipped_files:
            self._line(f"  {source_file}: {reason}")
        self._line()

    def render_verdict(self, result: ScanResult):
        self._line((BANNER, "bold cyan"))
        if result.passed:
            self._line(("✓ AUDIT PASSED", "bold green"))
            self._line(("No critical security issues found.", "green"))
        else:
            self._line(("✗ AUDIT FAILED", "bold red"))
            self._line((f"{len(result.issues)} critical issue(s) must be fixed.", "red"))
        self._line((BANNER, "bold cyan"))
        self._line()
