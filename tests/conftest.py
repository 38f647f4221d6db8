"""
Shared fixtures for the RouteWarden test suite
"""

import logging

import pytest


@pytest.fixture
def routes_dir(tmp_path):
    """Empty routes directory inside the test's temporary directory"""
    directory = tmp_path / "routes"
    directory.mkdir()
    return directory


@pytest.fixture
def write_routes(routes_dir):
    """Factory writing a route file below routes_dir and returning its path"""
    def _write(name, content):
        path = routes_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture(autouse=True)
def _reset_cli_logging():
    # The CLI installs a stderr handler on the root logger; CliRunner closes
    # that stream once the invocation returns
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "routewarden", False):
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)
