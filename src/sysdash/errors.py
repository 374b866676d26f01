"""Exceptions raised by sysdash."""


class DashboardError(Exception):
    """Base class for errors that spoil a single tick."""


class ProviderError(DashboardError):
    """An OS metrics query failed."""

    def __init__(self, query: str, cause: BaseException | None = None) -> None:
        self.query = query
        self.cause = cause
        message = f"metrics query {query!r} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class RenderError(DashboardError):
    """A snapshot could not be turned into markup."""
