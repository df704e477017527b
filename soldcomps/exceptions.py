"""
SoldComps - Exception Taxonomy

Field-level parse failures never raise; they become None. Page-level failures
raise PageLoadError and are absorbed by the page fetcher. Upstream failures
(official API, browser launch) propagate to the caller as UpstreamError.
"""

from __future__ import annotations


class SoldCompsError(Exception):
    """Base exception for all SoldComps errors."""

    def __init__(self, message: str, original_exception: Exception | None = None) -> None:
        self.original_exception = original_exception
        if original_exception is not None:
            # First line only, browser errors carry multi-line call logs
            orig_msg = str(original_exception).split("\n")[0]
            message += f" (caused by {type(original_exception).__name__}: {orig_msg})"
        super().__init__(message)


class PageLoadError(SoldCompsError):
    """A search page failed to navigate or its listings never became visible."""

    def __init__(
        self,
        url: str,
        message: str,
        original_exception: Exception | None = None,
    ) -> None:
        self.url = url
        super().__init__(f"{message}: {url}", original_exception)


class UpstreamError(SoldCompsError):
    """A query could not be run at all. Not recoverable inside the pipeline."""

    def __init__(
        self,
        service_name: str,
        message: str,
        original_exception: Exception | None = None,
    ) -> None:
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", original_exception)


class MarketplaceAPIError(UpstreamError):
    """eBay Browse API or OAuth token request failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_exception: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        if status_code is not None:
            message += f" (status {status_code})"
        super().__init__("ebay_api", message, original_exception)


class ScrapeSessionError(UpstreamError):
    """The browser session could not be started."""

    def __init__(self, message: str, original_exception: Exception | None = None) -> None:
        super().__init__("browser", message, original_exception)
