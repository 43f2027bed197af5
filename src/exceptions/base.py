"""Base exception classes for Reactlyve."""


class ReactlyveError(Exception):
    """
    Base exception for all Reactlyve errors.

    All custom exceptions in the application should inherit from this class
    to enable consistent error handling and catching.
    """

    pass
