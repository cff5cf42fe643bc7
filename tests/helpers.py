"""Test doubles shared across test modules."""

import asyncio
from typing import Any

from src.domain.exceptions import SubmissionFailed


class GatedOperation:
    """
    Asynchronous operation that blocks until released.

    Records every payload it is invoked with, so tests can assert how many
    times an external call actually happened.
    """

    def __init__(self) -> None:
        self.calls: list[Any] = []
        self.started = asyncio.Event()
        self.released = asyncio.Event()
        self.failure: str | None = None
        self.result: Any = "accepted"

    async def __call__(self, payload: Any) -> Any:
        self.calls.append(payload)
        self.started.set()
        await self.released.wait()
        if self.failure is not None:
            raise SubmissionFailed(self.failure)
        return self.result

    def release(self, failure: str | None = None) -> None:
        self.failure = failure
        self.released.set()


DEMO_EMAIL = "victim@example.com"
DEMO_SECRET = "correct-horse"
