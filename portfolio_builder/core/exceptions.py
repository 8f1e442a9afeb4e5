"""
Exception hierarchy for the data layer.

Validation errors are pydantic's own ``ValidationError`` and store errors are
pymongo's; the classes here cover what the layer itself raises.
"""

from typing import Optional


class PortfolioBuilderError(Exception):
    """Base exception for portfolio_builder"""
    pass


class ConnectionNotInitializedError(PortfolioBuilderError, RuntimeError):
    """Raised when the database handle is requested before connect()"""
    pass


class RepositoryError(PortfolioBuilderError):
    """
    Raised when a repository query or aggregation fails.

    Names the failing operation and keeps the original exception on
    ``cause`` (it is also chained as ``__cause__`` by ``raise ... from``).
    """

    def __init__(
        self,
        operation: str,
        message: str,
        cause: Optional[BaseException] = None
    ):
        self.operation = operation
        self.message = message
        self.cause = cause
        detail = str(cause) if cause is not None else "unknown error"
        super().__init__(f"{operation}: {message}: {detail}")
