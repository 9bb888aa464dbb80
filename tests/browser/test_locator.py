"""Tests for ElementLocator."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from crbrowser.browser.errors import (
    BrowserSessionError,
    BrowserTimeoutError,
    DriverError,
    ElementNotFoundError,
)
from crbrowser.browser.locator import ElementLocator


class TestElementLocator:
    """Test suite for ElementLocator."""

    @pytest.fixture
    def sleep(self):
        with patch("crbrowser.browser.locator.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            yield mock_sleep

    def test_defaults(self):
        locator = ElementLocator(AsyncMock())
        assert locator.attempts == 8
        assert locator.initial_wait == 0.1

    def test_max_wait(self):
        # 0.1 + 0.2 + ... + 12.8
        assert ElementLocator(AsyncMock()).max_wait == pytest.approx(25.5)

    @pytest.mark.parametrize("attempts, initial_wait", [(0, 0.1), (3, -1.0)])
    def test_rejects_bad_budget(self, attempts, initial_wait):
        with pytest.raises(ValueError):
            ElementLocator(AsyncMock(), attempts=attempts, initial_wait=initial_wait)

    async def test_present_element_found_first_try(self, sleep):
        node = MagicMock()
        lookup = AsyncMock(return_value=[node])

        nodes = await ElementLocator(lookup).find("//div")

        assert nodes == [node]
        lookup.assert_awaited_once_with("//div")
        # Only the wait before the first attempt
        assert [call.args[0] for call in sleep.await_args_list] == [pytest.approx(0.1)]

    async def test_element_appears_later(self, sleep):
        node = MagicMock()
        lookup = AsyncMock(side_effect=[[], [], [node]])

        nodes = await ElementLocator(lookup).find("//div")

        assert nodes == [node]
        assert lookup.await_count == 3
        waits = [call.args[0] for call in sleep.await_args_list]
        assert waits == pytest.approx([0.1, 0.2, 0.4])

    async def test_absent_element_exhausts_budget(self, sleep):
        lookup = AsyncMock(return_value=[])

        with pytest.raises(ElementNotFoundError) as exc_info:
            await ElementLocator(lookup).find("//missing")

        assert exc_info.value.xpath == "//missing"
        assert exc_info.value.attempts == 8
        assert lookup.await_count == 8

        waits = [call.args[0] for call in sleep.await_args_list]
        assert waits == pytest.approx([0.1, 0.2, 0.4, 0.8, 1.6, 3.2, 6.4, 12.8])
        assert sum(waits) == pytest.approx(25.5)

    async def test_lookup_errors_are_retried(self, sleep):
        node = MagicMock()
        lookup = AsyncMock(
            side_effect=[
                DriverError("Execution context was destroyed"),
                BrowserTimeoutError("get_nodes timed out"),
                [node],
            ]
        )

        assert await ElementLocator(lookup).find("//div") == [node]
        assert lookup.await_count == 3

    async def test_persistent_errors_become_not_found(self, sleep):
        lookup = AsyncMock(side_effect=DriverError("boom"))

        with pytest.raises(ElementNotFoundError) as exc_info:
            await ElementLocator(lookup, attempts=4).find("//div")

        assert lookup.await_count == 4
        assert isinstance(exc_info.value, ElementNotFoundError)

    async def test_session_errors_are_not_retried(self, sleep):
        lookup = AsyncMock(side_effect=BrowserSessionError("No active page"))

        with pytest.raises(BrowserSessionError):
            await ElementLocator(lookup).find("//div")

        lookup.assert_awaited_once()

    async def test_custom_budget(self, sleep):
        lookup = AsyncMock(return_value=[])

        with pytest.raises(ElementNotFoundError):
            await ElementLocator(lookup, attempts=3, initial_wait=1.0).find("//div")

        waits = [call.args[0] for call in sleep.await_args_list]
        assert waits == pytest.approx([1.0, 2.0, 4.0])
