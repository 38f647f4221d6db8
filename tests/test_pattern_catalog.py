"""
Tests for the safeguard detectors and policy tables
"""

import pytest

from models import Safeguard, ConfigurationError
from analyzers.pattern_catalog import (
    PatternCatalog, PatternError, RegexSafeguardDetector, SafeguardDetector, PUBLIC_ALLOWLIST
)
from config.audit_config import AuditConfig


class TestSafeguardDetection:

    @pytest.mark.parametrize("safeguard, text", [
        (Safeguard.AUTHENTICATION, "router.get('/me', authenticate, getMe)"),
        (Safeguard.AUTHENTICATION, "router.get('/me', requireAuth(), getMe)"),
        (Safeguard.AUTHORIZATION, "requireRole('admin')"),
        (Safeguard.AUTHORIZATION, "checkRole('owner')"),
        (Safeguard.RATE_LIMIT, "rateLimit({ max: 5 })"),
        (Safeguard.VALIDATION, "validate(homeSchema)"),
        (Safeguard.SANITIZATION, "sanitizeBody"),
        (Safeguard.SANITIZATION, "allowOnly(['name'])"),
    ])
    def test_default_detectors_match_conventional_names(self, safeguard, text):
        assert PatternCatalog().has(safeguard, text)

    def test_validation_requires_a_call(self):
        catalog = PatternCatalog()
        assert not catalog.has(Safeguard.VALIDATION, "router.post('/x', validateRequest, h)")
        assert catalog.has(Safeguard.VALIDATION, "router.post('/x', validate(schema), h)")

    def test_empty_text_never_matches(self):
        catalog = PatternCatalog()
        for safeguard in Safeguard:
            assert not catalog.has(safeguard, "")

    def test_custom_detector_replaces_default(self):
        class AlwaysPresent(SafeguardDetector):
            def detect(self, text):
                return True

        catalog = PatternCatalog(detectors={Safeguard.RATE_LIMIT: AlwaysPresent(Safeguard.RATE_LIMIT)})
        assert catalog.has(Safeguard.RATE_LIMIT, "router.post('/x', h)")
        assert not catalog.has(Safeguard.AUTHENTICATION, "router.post('/x', h)")

    def test_invalid_detector_pattern_raises(self):
        with pytest.raises(PatternError):
            RegexSafeguardDetector(Safeguard.VALIDATION, "validate(")

    def test_pattern_error_is_configuration_error(self):
        assert issubclass(PatternError, ConfigurationError)


class TestPublicAllowlist:

    def test_allowlisted_paths_are_public(self):
        catalog = PatternCatalog()
        for path in PUBLIC_ALLOWLIST:
            assert catalog.is_public(path, path)

    def test_segment_mode_covers_sub_paths_only(self):
        catalog = PatternCatalog()
        assert catalog.is_public("/api/v1/health/db", "/health/db")
        assert not catalog.is_public("/api/v1/healthy", "/healthy")
        assert not catalog.is_public("/api/v1/auth/login-history", "/auth/login-history")

    def test_substring_mode_matches_anywhere(self):
        catalog = PatternCatalog(allowlist_match="substring")
        assert catalog.is_public("/api/v1/healthy", "/healthy")
        assert catalog.is_public("/api/v1/auth/login-history", "/auth/login-history")

    def test_declared_path_is_also_checked(self):
        catalog = PatternCatalog(public_allowlist=["/status"])
        assert catalog.is_public("/api/v1/status", "/status")

    def test_unknown_match_mode_raises(self):
        with pytest.raises(PatternError):
            PatternCatalog(allowlist_match="glob")


class TestAdminPatterns:

    @pytest.mark.parametrize("path", [
        "/api/v1/admin/settings",
        "/api/v1/users/:id",
        "/api/v1/users/:id/delete",
        "/api/v1/users/me",
        "/api/v1/analytics",
        "/api/v1/reports/:id",
        "/api/v1/export",
    ])
    def test_admin_paths(self, path):
        assert PatternCatalog().is_admin(path, "GET")

    @pytest.mark.parametrize("path", [
        "/api/v1/profile",
        "/api/v1/users",
        "/api/v1/homes/:id",
        "/api/v1/admin",
    ])
    def test_non_admin_paths(self, path):
        assert not PatternCatalog().is_admin(path, "GET")

    def test_method_qualified_pattern(self):
        catalog = PatternCatalog()
        assert catalog.is_admin("/api/v1/users", "DELETE")
        assert not catalog.is_admin("/api/v1/users", "GET")
        assert not catalog.is_admin("/api/v1/users")

    def test_invalid_admin_pattern_raises(self):
        with pytest.raises(PatternError):
            PatternCatalog(admin_patterns=["/users/(\\w+"])


class TestFromConfig:

    def test_partial_safeguard_override(self):
        config = AuditConfig()
        config.safeguard_patterns["rate_limit"] = "throttle"
        catalog = PatternCatalog.from_config(config)

        assert catalog.has(Safeguard.RATE_LIMIT, "throttle(10)")
        assert not catalog.has(Safeguard.RATE_LIMIT, "rateLimit()")
        assert catalog.has(Safeguard.AUTHENTICATION, "authenticate")

    def test_unknown_safeguard_raises(self):
        config = AuditConfig(safeguard_patterns={"csrf": "csrfProtection"})
        with pytest.raises(PatternError):
            PatternCatalog.from_config(config)

    def test_policy_tables_come_from_config(self):
        config = AuditConfig(public_allowlist=["/api/v1/ping"], admin_patterns=["/internal"],
                             allowlist_match="substring")
        catalog = PatternCatalog.from_config(config)

        assert catalog.is_public("/api/v1/ping", "/ping")
        assert not catalog.is_public("/api/v1/health", "/health")
        assert catalog.is_admin("/api/v1/internal/jobs", "GET")
        assert not catalog.is_admin("/api/v1/admin/jobs", "GET")
        assert catalog.allowlist_match == "substring"
