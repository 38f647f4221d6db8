"""
JSON export of audit results
"""

import json
from typing import Any, Dict

from models import ScanResult

class JSONExporter:
    """Machine readable audit report for CI pipelines"""

    def __init__(self, include_routes: bool = True):
        self.include_routes = include_routes

    def build(self, result: ScanResult) -> Dict[str, Any]:
        """Build the JSON-serialisable report document"""
        document = {
            'summary': result.get_summary(),
            'verdict': 'PASS' if result.passed else 'FAIL',
            'issues': [finding.to_dict() for finding in result.issues],
            'warnings': [finding.to_dict() for finding in result.warnings],
            'recommendations': [finding.to_dict() for finding in result.recommendations],
            'skipped_files': [
                {'file': source_file, 'reason': reason}
                for source_file, reason in result.skipped_files
            ],
        }

        if self.include_routes:
            document['routes'] = [
                {
                    'method': evaluation.route.method.value,
                    'path': evaluation.route.full_path,
                    'declared_path': evaluation.route.declared_path,
                    'file': evaluation.route.source_file,
                    'line_number': evaluation.route.line_number,
                    'public': evaluation.is_public,
                    'admin': evaluation.is_admin,
                    'authenticated': evaluation.has_authentication,
                    'authorized': evaluation.has_authorization,
                }
                for file_result in result.file_results
                for evaluation in file_result.evaluations
            ]

        return document

    def dumps(self, result: ScanResult) -> str:
        """Serialise the report document"""
        return json.dumps(self.build(result), indent=2)
