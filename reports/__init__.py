"""
Report renderers for the RouteWarden route security auditor.
"""

from .terminal_reporter import TerminalReporter
from .json_exporter import JSONExporter

__all__ = ['TerminalReporter', 'JSONExporter']
