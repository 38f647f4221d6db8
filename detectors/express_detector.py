import re
from typing import List, Optional, Tuple

from models import RouteDeclaration, FileContext, HTTPMethod, Safeguard, ConfigurationError
from detectors.base_detector import BaseDetector
from analyzers.pattern_catalog import PatternCatalog

# Router objects whose calls register routes: router, app, userRouter, subrouter, ...
DEFAULT_ROUTER_IDENTIFIERS = r'router|app|\w+[Rr]outer'

DEFAULT_API_PREFIX = '/api/v1'

_CLOSERS = {'(': ')', '[': ']', '{': '}'}

class ExpressRouteDetector(BaseDetector):
    """
    Route extractor for Express style registrations such as
    router.post('/homes', authenticate, validate(schema), createHome);

    Works on source text only. Call sites that do not follow the idiom are
    not matched and produce no declaration.
    """

    def __init__(self, catalog: Optional[PatternCatalog] = None,
                 api_prefix: str = DEFAULT_API_PREFIX,
                 router_identifiers: str = DEFAULT_ROUTER_IDENTIFIERS):
        super().__init__("express")
        self.catalog = catalog or PatternCatalog()
        self.api_prefix = api_prefix.rstrip('/')

        try:
            # <router>.<method>('<path>'
            self.route_pattern = re.compile(
                rf'\b(?:{router_identifiers})\.(?P<method>get|post|put|patch|delete|use)\s*\(\s*[\'"`](?P<path>[^\'"`]+)[\'"`]'
            )
            # <router>.use( ... whole-router registration
            self.router_use_pattern = re.compile(rf'\b(?:{router_identifiers})\.use\s*\(')
        except re.error as e:
            raise ConfigurationError(f"Invalid router identifier pattern '{router_identifiers}': {e}")

    def extract_routes(self, file_path: str, content: str) -> Tuple[FileContext, List[RouteDeclaration]]:
        """
        Extract every route declaration and the file-wide authentication flag.

        Args:
            file_path: Path of the file relative to the scan root
            content: File content as string

        Returns:
            FileContext for the file and the RouteDeclarations in file order
        """
        content = self.preprocess_content(content)
        context = FileContext(
            source_file=file_path,
            has_global_authentication=self.has_global_authentication(content),
        )

        matches = list(self.route_pattern.finditer(content))
        routes = []
        for index, match in enumerate(matches):
            method, declared_path = match.group('method'), match.group('path')
            start = match.start()
            end = self.find_call_end(content, content.index('(', match.end('method')))
            # A span never reaches into the next declaration
            if index + 1 < len(matches):
                end = min(end, matches[index + 1].start())

            routes.append(RouteDeclaration(
                method=HTTPMethod(method.upper()),
                declared_path=declared_path,
                full_path=self.normalize_path(declared_path),
                source_file=file_path,
                definition_span=content[start:end],
                line_number=self.find_line_number(content, start),
            ))

        self.log_detection_result(file_path, len(routes), context.has_global_authentication)
        return context, routes

    def has_global_authentication(self, content: str) -> bool:
        """
        Check whether any whole-router registration (router.use(...)) in the
        file passes authentication middleware.

        Only the argument list of each call is inspected, up to the next
        route declaration at most.
        """
        route_starts = [match.start() for match in self.route_pattern.finditer(content)]
        for match in self.router_use_pattern.finditer(content):
            open_paren = match.end() - 1
            next_route = next((start for start in route_starts if start > open_paren), len(content))
            close = min(self.find_call_end(content, open_paren), next_route)
            arguments = content[open_paren + 1:close]
            if self.catalog.has(Safeguard.AUTHENTICATION, arguments):
                self.logger.debug(f"Router-wide authentication found: {arguments.strip()[:80]}")
                return True
        return False

    def normalize_path(self, declared_path: str) -> str:
        """Prefix the API base onto a declared path: 'homes' -> '/api/v1/homes'"""
        path = declared_path if declared_path.startswith('/') else '/' + declared_path
        return f"{self.api_prefix}{path}"

    def find_call_end(self, content: str, open_paren: int) -> int:
        """
        Find where the call whose argument list opens at open_paren ends.

        Tracks nested (), [] and {} while skipping string literals and
        comments. The call ends after its closing parenthesis. A ';' directly
        inside the argument list (malformed code) also ends it, and an
        unterminated call runs to end of file.

        Returns:
            Exclusive end offset of the call
        """
        stack = []
        i = open_paren
        length = len(content)

        while i < length:
            char = content[i]

            if char in '\'"`':
                i = self._skip_string(content, i)
                continue
            if content.startswith('//', i):
                newline = content.find('\n', i)
                i = length if newline == -1 else newline
                continue
            if content.startswith('/*', i):
                close = content.find('*/', i + 2)
                i = length if close == -1 else close + 2
                continue

            if char in _CLOSERS:
                stack.append(_CLOSERS[char])
            elif char in ')]}':
                if stack and stack[-1] == char:
                    stack.pop()
                    if not stack:
                        return i + 1
            elif char == ';' and len(stack) == 1:
                return i
            i += 1

        return length

    def _skip_string(self, content: str, start: int) -> int:
        """
        Return the offset just past the string literal opening at start.

        A quote that is still open at the end of its line is treated as a
        plain character and only the quote itself is skipped.
        """
        quote = content[start]
        i = start + 1
        length = len(content)

        while i < length:
            char = content[i]
            if char == '\\':
                i += 2
                continue
            if char == quote:
                return i + 1
            if char == '\n' and quote != '`':
                break
            i += 1

        if quote == '`':
            return length
        # Unterminated quote (e.g. inside a regex literal such as /'/g) is
        # not a string; rescan from the next character
        return start + 1
