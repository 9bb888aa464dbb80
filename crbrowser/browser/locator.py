"""Element-existence polling.

Pages render asynchronously, so a node that is absent on the first lookup may
appear a moment later. :class:`ElementLocator` repeats an XPath lookup with
exponential backoff until it returns at least one node or the attempt budget
runs out.

With the defaults (8 attempts, 100ms initial wait) the waits before each
attempt are 0.1, 0.2, 0.4, ... 12.8 seconds, about 25.5 seconds in total.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from playwright.async_api import ElementHandle
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from .errors import BrowserTimeoutError, DriverError, ElementNotFoundError

logger = structlog.get_logger(__name__)

NodeLookup = Callable[[str], Awaitable[list[ElementHandle]]]

# Lookup failures worth another attempt; session errors are not.
RETRYABLE_ERRORS = (DriverError, BrowserTimeoutError)


def _no_nodes(nodes: list[Any]) -> bool:
    return not nodes


def _log_retry(retry_state: RetryCallState) -> None:
    """Log why a lookup attempt is being repeated."""
    xpath = retry_state.args[0] if retry_state.args else None
    outcome = retry_state.outcome
    next_wait = retry_state.next_action.sleep if retry_state.next_action else None

    if outcome is not None and outcome.failed:
        logger.debug(
            "find_element_lookup_error",
            xpath=xpath,
            attempt=retry_state.attempt_number,
            error=str(outcome.exception()),
            next_wait=next_wait,
        )
    else:
        logger.debug(
            "find_element_no_match",
            xpath=xpath,
            attempt=retry_state.attempt_number,
            next_wait=next_wait,
        )


class ElementLocator:
    """Polls a node lookup until it finds something.

    Attributes:
        lookup: Coroutine function returning the nodes matching an XPath
        attempts: Maximum number of lookups
        initial_wait: Wait before the first lookup; doubled for each later one
    """

    DEFAULT_ATTEMPTS = 8
    DEFAULT_INITIAL_WAIT = 0.1

    def __init__(
        self,
        lookup: NodeLookup,
        attempts: int = DEFAULT_ATTEMPTS,
        initial_wait: float = DEFAULT_INITIAL_WAIT,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        if initial_wait < 0:
            raise ValueError("initial_wait must not be negative")

        self.lookup = lookup
        self.attempts = attempts
        self.initial_wait = initial_wait

    @property
    def max_wait(self) -> float:
        """Total time spent waiting when every attempt comes back empty."""
        return self.initial_wait * (2**self.attempts - 1)

    async def find(self, xpath: str) -> list[ElementHandle]:
        """Locate the nodes matching ``xpath``.

        Args:
            xpath: XPath expression to resolve against the page

        Returns:
            list[ElementHandle]: The non-empty result of the first successful lookup

        Raises:
            ElementNotFoundError: If every attempt errored or matched nothing
            BrowserSessionError: If there is no active page to query
        """
        logger.debug("find_element_started", xpath=xpath, attempts=self.attempts)

        # Waits between attempts are handled by tenacity; this is the one before the first.
        await asyncio.sleep(self.initial_wait)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.initial_wait * 2, exp_base=2),
            retry=retry_if_exception_type(RETRYABLE_ERRORS) | retry_if_result(_no_nodes),
            before_sleep=_log_retry,
            sleep=asyncio.sleep,
        )

        try:
            nodes = await retrying(self.lookup, xpath)
        except RetryError as e:
            logger.info("find_element_not_found", xpath=xpath, attempts=self.attempts)
            raise ElementNotFoundError(xpath, attempts=self.attempts) from e

        logger.debug(
            "find_element_found",
            xpath=xpath,
            attempt=retrying.statistics.get("attempt_number"),
            count=len(nodes),
        )
        return nodes
