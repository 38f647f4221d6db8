#!/usr/bin/env python3
"""
Configuration Management for RouteWarden

Configuration system supporting:
- Routes directory and file naming conventions
- Safeguard detector patterns
- Public allowlist and admin route policy tables
- Environment variable overrides
- Validation and defaults
"""

import os
import yaml
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field

from models import ConfigurationError
from analyzers.pattern_catalog import (
    SAFEGUARD_PATTERNS, PUBLIC_ALLOWLIST, ADMIN_PATTERNS, ALLOWLIST_MATCH_MODES
)
from analyzers.file_discovery import DEFAULT_SUFFIXES, DEFAULT_MARKER, DEFAULT_EXCLUDE_DIRS
from detectors.express_detector import DEFAULT_ROUTER_IDENTIFIERS, DEFAULT_API_PREFIX

DEFAULT_CONFIG_NAMES = ["routewarden.yaml", "routewarden.yml", ".routewarden.yaml"]

EXAMPLE_AUTH_PATTERN = r'authenticate|isAuthenticated|requireAuth|passport\.authenticate'

@dataclass
class AuditConfig:
    """Complete auditor configuration"""
    routes_dir: str = "src/routes"
    api_prefix: str = DEFAULT_API_PREFIX
    file_suffixes: List[str] = field(default_factory=lambda: list(DEFAULT_SUFFIXES))
    route_marker: str = DEFAULT_MARKER
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    router_identifiers: str = DEFAULT_ROUTER_IDENTIFIERS
    public_allowlist: List[str] = field(default_factory=lambda: list(PUBLIC_ALLOWLIST))
    admin_patterns: List[str] = field(default_factory=lambda: list(ADMIN_PATTERNS))
    safeguard_patterns: Dict[str, str] = field(
        default_factory=lambda: {safeguard.value: pattern for safeguard, pattern in SAFEGUARD_PATTERNS.items()}
    )
    allowlist_match: str = "segment"  # segment, substring
    verbose: bool = False
    workers: int = 1

class ConfigurationManager:
    """
    Configuration management system.

    Sources, later ones winning:
    - Built-in defaults
    - Configuration files (YAML or JSON)
    - Environment variables
    """

    def __init__(self, config_paths: Optional[List[str]] = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_paths: Configuration files to load. Files named here must
                parse; when omitted the default locations are searched and
                broken files there are skipped with a warning.
            environ: Environment mapping, defaults to os.environ
        """
        self.logger = logging.getLogger(__name__)
        self.environ = os.environ if environ is None else environ
        self.explicit = config_paths is not None
        self.config_paths = config_paths if config_paths is not None else self._get_default_config_paths()
        self.config = AuditConfig()
        self._load_configurations()

    def _get_default_config_paths(self) -> List[str]:
        """Configuration files picked up without --config"""
        paths = []

        # Working directory
        for config_name in DEFAULT_CONFIG_NAMES:
            if os.path.exists(config_name):
                paths.append(config_name)

        # Explicit file named by the environment
        env_config = self.environ.get("ROUTEWARDEN_CONFIG")
        if env_config and os.path.exists(env_config):
            paths.append(env_config)

        return paths

    def _load_configurations(self):
        """Apply config files in order, then the environment, then validate"""
        self.logger.debug(f"Loading configurations from: {self.config_paths}")

        for config_path in self.config_paths:
            try:
                self._load_config_file(config_path)
                self.logger.info(f"Loaded configuration from: {config_path}")
            except (OSError, ValueError, yaml.YAMLError) as e:
                if self.explicit:
                    raise ConfigurationError(f"Failed to load config {config_path}: {e}")
                self.logger.warning(f"Failed to load config {config_path}: {e}")

        self._load_environment_overrides()
        self._validate_configuration()

    def _load_config_file(self, config_path: str):
        """Read one YAML or JSON file and merge its keys"""
        with open(config_path, 'r', encoding='utf-8') as f:
            if config_path.endswith('.json'):
                config_data = json.load(f)
            else:
                config_data = yaml.safe_load(f)

        if config_data is None:
            return
        if not isinstance(config_data, dict):
            raise ValueError("top level of configuration must be a mapping")

        self._merge_config(config_data)

    def _merge_config(self, new_config: Dict[str, Any]):
        """Overlay a parsed mapping onto the current AuditConfig"""
        for key, value in new_config.items():
            if not hasattr(self.config, key):
                self.logger.warning(f"Ignoring unknown configuration key: {key}")
                continue

            if key == 'safeguard_patterns':
                if not isinstance(value, dict):
                    raise ValueError("safeguard_patterns must be a mapping")
                # Partial override: unspecified safeguards keep their defaults
                self.config.safeguard_patterns.update(value)
            else:
                setattr(self.config, key, value)

    def _load_environment_overrides(self):
        """Apply ROUTEWARDEN_* and VERBOSE overrides"""
        if self.environ.get('VERBOSE', '').lower() == 'true':
            self.config.verbose = True

        if self.environ.get('ROUTEWARDEN_ROUTES_DIR'):
            self.config.routes_dir = self.environ['ROUTEWARDEN_ROUTES_DIR']

        if self.environ.get('ROUTEWARDEN_API_PREFIX') is not None:
            self.config.api_prefix = self.environ['ROUTEWARDEN_API_PREFIX']

        if self.environ.get('ROUTEWARDEN_ALLOWLIST_MATCH'):
            self.config.allowlist_match = self.environ['ROUTEWARDEN_ALLOWLIST_MATCH']

        if self.environ.get('ROUTEWARDEN_WORKERS'):
            try:
                self.config.workers = int(self.environ['ROUTEWARDEN_WORKERS'])
            except ValueError:
                self.logger.warning(f"Ignoring non-numeric ROUTEWARDEN_WORKERS: {self.environ['ROUTEWARDEN_WORKERS']}")

    def _validate_configuration(self):
        """Normalise list fields and reject values the auditor cannot use"""
        for name in ('routes_dir', 'api_prefix', 'route_marker', 'router_identifiers', 'allowlist_match'):
            value = getattr(self.config, name)
            if not isinstance(value, str):
                raise ConfigurationError(f"{name} must be a string, got {value!r}")

        if self.config.allowlist_match not in ALLOWLIST_MATCH_MODES:
            raise ConfigurationError(
                f"Invalid allowlist_match '{self.config.allowlist_match}', "
                f"expected one of: {', '.join(ALLOWLIST_MATCH_MODES)}"
            )

        for name in ('file_suffixes', 'exclude_dirs', 'public_allowlist', 'admin_patterns'):
            value = getattr(self.config, name)
            if isinstance(value, str):
                setattr(self.config, name, [value])
            elif not isinstance(value, list):
                raise ConfigurationError(f"{name} must be a list")
            elif not all(isinstance(entry, str) for entry in value):
                raise ConfigurationError(f"{name} entries must be strings")

        for safeguard, pattern in self.config.safeguard_patterns.items():
            if not isinstance(pattern, str):
                raise ConfigurationError(f"safeguard_patterns.{safeguard} must be a string, got {pattern!r}")

        try:
            self.config.workers = int(self.config.workers)
        except (TypeError, ValueError):
            raise ConfigurationError(f"workers must be an integer, got {self.config.workers!r}")
        if self.config.workers < 1:
            self.logger.warning("Worker count too low, using 1")
            self.config.workers = 1

        self.logger.debug("Configuration validation completed")

    def create_example_config(self, output_path: str):
        """Write an example routewarden.yaml covering every option"""
        example_config = {
            'routes_dir': 'backend/src/routes',
            'api_prefix': '/api/v1',
            'file_suffixes': ['.js', '.ts'],
            'route_marker': 'route',
            'exclude_dirs': ['node_modules', '.git', '__tests__'],
            'router_identifiers': DEFAULT_ROUTER_IDENTIFIERS,
            'allowlist_match': 'segment',
            'public_allowlist': list(PUBLIC_ALLOWLIST) + ['/api/v1/sitemap'],
            'admin_patterns': list(ADMIN_PATTERNS),
            'safeguard_patterns': {
                'authentication': EXAMPLE_AUTH_PATTERN,
                'rate_limit': r'rateLimit|limiter|throttle',
            },
            'workers': 4,
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(example_config, f, default_flow_style=False, sort_keys=False)

        self.logger.info(f"Example configuration created: {output_path}")

def load_config(config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> AuditConfig:
    """Load the auditor configuration, optionally from an explicit file"""
    if config_path and not Path(config_path).exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    manager = ConfigurationManager([config_path] if config_path else None, environ=environ)
    return manager.config
