"""Tests for the error handling decorators."""

import inspect

import pytest

from recallion.core.decorators import with_error_handling
from recallion.core.errors import NotFoundError


class TestWithErrorHandling:
    """Tests for with_error_handling."""

    def test_has_no_swallowing_switch(self) -> None:
        """Should only accept the level for unexpected errors."""
        assert list(inspect.signature(with_error_handling).parameters) == ["error_level"]

    async def test_async_errors_are_reraised(self) -> None:
        """Should log and re-raise errors from coroutines."""

        @with_error_handling()
        async def lookup() -> str:
            raise NotFoundError()

        with pytest.raises(NotFoundError):
            await lookup()

    def test_sync_errors_are_reraised(self) -> None:
        """Should log and re-raise errors from plain functions."""

        @with_error_handling()
        def parse() -> int:
            raise RuntimeError("bad")

        with pytest.raises(RuntimeError, match="bad"):
            parse()

    async def test_return_value_passes_through(self) -> None:
        """Should return the wrapped result untouched."""

        @with_error_handling()
        async def answer() -> int:
            return 42

        assert await answer() == 42
