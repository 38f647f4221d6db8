"""
Route extractors for the RouteWarden route security auditor.
"""

from .base_detector import BaseDetector
from .express_detector import ExpressRouteDetector

__all__ = ['BaseDetector', 'ExpressRouteDetector']
