"""A Typer subclass whose commands and callbacks may be coroutines."""

import asyncio
import inspect
from collections.abc import Callable
from functools import partial, wraps
from typing import Any

from typer import Typer


class AsyncTyper(Typer):
    """A Typer that runs coroutine commands and callbacks with ``asyncio.run``."""

    @staticmethod
    def maybe_run_async(decorator: Callable[..., Any], func: Callable[..., Any]) -> Any:
        """
        Register a function with a Typer decorator, running it in a fresh event loop if it is a coroutine.

        Args:
            decorator: The Typer decorator to apply.
            func: The command or callback being registered.

        Returns:
            The original function, so it can still be awaited directly.

        """
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            def runner(*args: Any, **kwargs: Any) -> Any:
                # Each invocation owns its loop; calling from inside a running loop fails.
                return asyncio.run(func(*args, **kwargs))

            decorator(runner)
        else:
            decorator(func)
        return func

    def callback(self, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Create a callback decorator that accepts coroutine functions."""
        decorator = super().callback(*args, **kwargs)
        return partial(self.maybe_run_async, decorator)

    def command(self, *args: Any, **kwargs: Any) -> Callable[..., Any]:
        """Create a command decorator that accepts coroutine functions."""
        decorator = super().command(*args, **kwargs)
        return partial(self.maybe_run_async, decorator)
