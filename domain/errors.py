from __future__ import annotations


class SystematicsError(Exception):
    """Base class for failures surfaced while fetching or deriving a system graph."""


class NetworkError(SystematicsError):
    pass


class ParseError(SystematicsError):
    pass


class NotFound(SystematicsError):
    def __init__(self, system_id: str, message: str | None = None) -> None:
        self.system_id = system_id
        super().__init__(message or f"System {system_id} not found")


class UnsupportedSystemSize(SystematicsError):
    def __init__(self, node_count: object) -> None:
        self.node_count = node_count
        super().__init__(f"Unsupported system size: {node_count!r} (expected 1..12)")


def describe_error(exc: SystematicsError) -> str:
    if isinstance(exc, NetworkError):
        return f"Network error: {exc}"
    if isinstance(exc, ParseError):
        return f"Parse error: {exc}"
    if isinstance(exc, NotFound):
        return f"Not found: {exc}"
    return str(exc)
