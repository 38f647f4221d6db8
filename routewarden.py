#!/usr/bin/env python3
"""
RouteWarden Route Security Auditor

Scans route definition files for endpoint declarations and verifies that
each one carries authentication, authorization, validation, sanitization
and rate limiting middleware. Exits non-zero when critical issues are found.
"""

import os
import sys

# Ensure local modules can be imported
script_dir = os.path.dirname(os.path.abspath(__file__))
if script_dir not in sys.path:
    sys.path.insert(0, script_dir)

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List

import click
from rich.console import Console
from rich.markup import escape

from models import ScanResult, FileAuditResult, RouteAuditError, ConfigurationError
from analyzers.pattern_catalog import PatternCatalog, ALLOWLIST_MATCH_MODES
from analyzers.file_discovery import discover_route_files, RootNotFoundError
from analyzers.policy_evaluator import PolicyEvaluator
from detectors.express_detector import ExpressRouteDetector
from reports.terminal_reporter import TerminalReporter
from reports.json_exporter import JSONExporter
from config.audit_config import AuditConfig, ConfigurationManager, load_config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class RouteAuditScanner:
    """Main scanner class auditing every route file under the routes directory."""

    def __init__(self, config: AuditConfig):
        self.config = config
        self.logger = logging.getLogger('route_audit_scanner')

        self.catalog = PatternCatalog.from_config(config)
        self.detector = ExpressRouteDetector(
            self.catalog,
            api_prefix=config.api_prefix,
            router_identifiers=config.router_identifiers,
        )
        self.evaluator = PolicyEvaluator(self.catalog)

    def scan(self) -> ScanResult:
        """
        Audit the configured routes directory.

        Files are processed independently and their partial results are
        reduced in discovery order, so the result does not depend on the
        number of workers.

        Returns:
            ScanResult with counters and findings

        Raises:
            RootNotFoundError: If the routes directory does not exist
        """
        files = self._discover_files()

        if self.config.workers > 1 and len(files) > 1:
            self.logger.debug(f"Scanning {len(files)} files with {self.config.workers} workers")
            with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                file_results = list(executor.map(self._scan_single_file, files))
        else:
            file_results = [self._scan_single_file(file_path) for file_path in files]

        result = ScanResult()
        for file_result in file_results:
            result.merge(file_result)

        self.logger.info(
            f"Audited {result.total_routes} routes in {result.files_scanned} files: "
            f"{len(result.issues)} issues, {len(result.warnings)} warnings"
        )
        return result

    def _discover_files(self) -> List[str]:
        """Discover all route files to scan."""
        return discover_route_files(
            self.config.routes_dir,
            suffixes=self.config.file_suffixes,
            marker=self.config.route_marker,
            exclude_dirs=self.config.exclude_dirs,
        )

    def _scan_single_file(self, file_path: str) -> FileAuditResult:
        """Extract and classify the routes of one file."""
        relative_path = self._relative_path(file_path)

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(f"Skipping unreadable route file {relative_path}: {e}")
            return FileAuditResult(source_file=relative_path, error=_describe_read_error(e))

        context, routes = self.detector.extract_routes(relative_path, content)
        return FileAuditResult(
            source_file=relative_path,
            context=context,
            evaluations=self.evaluator.evaluate_file(context, routes),
        )

    def _relative_path(self, file_path: str) -> str:
        """Path relative to the routes directory, with forward slashes."""
        return os.path.relpath(file_path, self.config.routes_dir).replace(os.sep, '/')

def _describe_read_error(error: Exception) -> str:
    if isinstance(error, UnicodeDecodeError):
        return f"not valid UTF-8 ({error.reason} at byte {error.start})"
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    return str(error)

def _setup_logging(verbose: bool):
    """Setup logging configuration on stderr, leaving stdout to the report."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, 'routewarden', False):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.routewarden = True
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

@click.command()
@click.argument('routes_dir', required=False, type=click.Path())
@click.option('--config', 'config_path', type=click.Path(), help='Path to a YAML or JSON configuration file')
@click.option('-v', '--verbose', is_flag=True, help='Show recommendations and debug logging (also VERBOSE=true)')
@click.option('--output-format', type=click.Choice(['text', 'json']), default='text',
              help='Report format written to stdout')
@click.option('--workers', type=click.IntRange(min=1), help='Number of files to process in parallel')
@click.option('--allowlist-match', type=click.Choice(ALLOWLIST_MATCH_MODES),
              help='How public allowlist entries match paths')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.option('--config-generate', type=click.Path(), help='Write an example configuration file and exit')
def main(routes_dir, config_path, verbose, output_format, workers, allowlist_match, no_color, config_generate):
    """
    RouteWarden Route Security Auditor

    Audit the route files under ROUTES_DIR (default: src/routes) for missing
    security middleware.
    """
    _setup_logging(verbose)
    console = Console(no_color=no_color, highlight=False)
    error_console = Console(stderr=True, no_color=no_color, highlight=False)

    try:
        if config_generate:
            try:
                ConfigurationManager([]).create_example_config(config_generate)
            except OSError as e:
                raise ConfigurationError(f"Cannot write {config_generate}: {e.strerror or e}")
            console.print(f"[green]Example configuration written to {escape(config_generate)}[/green]", soft_wrap=True)
            return

        config = load_config(config_path)
        if routes_dir:
            config.routes_dir = routes_dir
        if workers:
            config.workers = workers
        if allowlist_match:
            config.allowlist_match = allowlist_match
        verbose = verbose or config.verbose
        if verbose:
            _setup_logging(verbose)

        result = RouteAuditScanner(config).scan()
    except RootNotFoundError as e:
        error_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        sys.exit(1)
    except ConfigurationError as e:
        error_console.print(f"[red]Configuration error: {escape(str(e))}[/red]", soft_wrap=True)
        sys.exit(2)
    except RouteAuditError as e:
        error_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
        sys.exit(1)

    if output_format == 'json':
        click.echo(JSONExporter().dumps(result))
    else:
        reporter = TerminalReporter(console)
        reporter.render_start()
        reporter.render(result, verbose=verbose)

    sys.exit(result.exit_code)

if __name__ == "__main__":
    main()
