"""
Configuration for the RouteWarden route security auditor.
"""

from .audit_config import AuditConfig, ConfigurationManager, load_config

__all__ = ['AuditConfig', 'ConfigurationManager', 'load_config']
