"""Exceptions raised by the browser layer."""


class BrowserError(Exception):
    """Base class for every error raised by crbrowser."""

    pass


class ElementNotFoundError(BrowserError):
    """Raised when no DOM node matches an XPath within the lookup budget."""

    def __init__(self, xpath: str, attempts: int | None = None) -> None:
        self.xpath = xpath
        self.attempts = attempts
        message = f"element not found: {xpath}"
        if attempts is not None:
            message += f" (after {attempts} attempts)"
        super().__init__(message)


class BrowserSessionError(BrowserError):
    """Raised when the browser cannot be started or is used without an active page."""

    pass


class BrowserTimeoutError(BrowserError):
    """Raised when a driver call exceeds the handle timeout."""

    pass


class DriverError(BrowserError):
    """Raised when Playwright rejects a call; the original error is the __cause__."""

    pass


class CoordinateParseError(BrowserError, ValueError):
    """Raised when an element position string is not of the form "top:left"."""

    pass
