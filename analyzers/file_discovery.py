"""
Route file discovery for the route security auditor
"""

import os
import logging
from typing import List, Sequence

from models import RouteAuditError

logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = ('.js',)
DEFAULT_MARKER = 'route'
DEFAULT_EXCLUDE_DIRS = ('node_modules', '.git')


class RootNotFoundError(RouteAuditError):
    """Raised when the routes directory does not exist"""
    pass


def discover_route_files(root_dir: str, suffixes: Sequence[str] = DEFAULT_SUFFIXES,
                         marker: str = DEFAULT_MARKER,
                         exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS) -> List[str]:
    """
    Recursively enumerate route definition files under root_dir.

    Entries are visited depth-first in name order so repeated scans see the
    same sequence. Symlinks are neither followed nor selected.

    Args:
        root_dir: Directory holding route modules
        suffixes: Accepted file name endings (e.g. ['.js', '.ts'])
        marker: Text a file name must contain to count as a route module
        exclude_dirs: Directory names that are never entered

    Returns:
        List of file paths

    Raises:
        RootNotFoundError: If root_dir is missing or not a directory
    """
    if not os.path.isdir(root_dir):
        raise RootNotFoundError(f"Routes directory not found: {root_dir}")

    files: List[str] = []
    _walk(root_dir, tuple(suffixes), marker, set(exclude_dirs), files)

    logger.info(f"Discovered {len(files)} route files under {root_dir}")
    return files


def _walk(directory: str, suffixes: tuple, marker: str, exclude_dirs: set, files: List[str]):
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        logger.warning(f"Cannot list directory {directory}: {e}")
        return

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            if entry.name in exclude_dirs:
                logger.debug(f"Skipping excluded directory {entry.path}")
                continue
            _walk(entry.path, suffixes, marker, exclude_dirs, files)
        elif entry.is_file(follow_symlinks=False) and is_route_file(entry.name, suffixes, marker):
            files.append(entry.path)


def is_route_file(file_name: str, suffixes: Sequence[str] = DEFAULT_SUFFIXES,
                  marker: str = DEFAULT_MARKER) -> bool:
    """Check whether a file name follows the route module naming convention"""
    # Marker is case-insensitive so homeRoutes.js and auth.routes.js both count
    return file_name.endswith(tuple(suffixes)) and marker.lower() in file_name.lower()
