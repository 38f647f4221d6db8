from abc import ABC, abstractmethod
from typing import List, Tuple
import logging

from models import RouteDeclaration, FileContext

class BaseDetector(ABC):
    """
    Abstract base class for all route extractors.
    Each route declaration idiom should have its own subclass.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"detector.{name.lower()}")

    @abstractmethod
    def extract_routes(self, file_path: str, content: str) -> Tuple[FileContext, List[RouteDeclaration]]:
        """
        Extract route declarations from the given file content.

        Args:
            file_path: Path of the file relative to the scan root
            content: File content as string

        Returns:
            The file context and the route declarations in file order
        """
        pass

    def preprocess_content(self, content: str) -> str:
        """
        Preprocess file content before analysis.
        Strips a leading byte order mark left by some editors.

        Args:
            content: Original file content

        Returns:
            Preprocessed content
        """
        return content[1:] if content.startswith('\ufeff') else content

    def find_line_number(self, content: str, position: int) -> int:
        """Find line number from character position in content"""
        return content.count('\n', 0, position) + 1

    def log_detection_result(self, file_path: str, routes_count: int, global_auth: bool):
        """
        Log detection results.

        Args:
            file_path: Path to the analyzed file
            routes_count: Number of routes detected
            global_auth: Whether router-wide authentication was found
        """
        self.logger.debug(
            f"Detected {routes_count} routes in {file_path} using {self.name} detector"
            f" (global authentication: {'yes' if global_auth else 'no'})"
        )
