"""Polling of task status until a terminal state.

Each :meth:`TaskPoller.poll` call owns its own clock reading and attempt
counter, so any number of polls may run concurrently on one event loop. Waits
are ``await``-ed; cancelling the calling coroutine aborts the poll.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from kieai_kit.catalog import DEFAULT_STATUS_PATH
from kieai_kit.envelope import unwrap_response
from kieai_kit.errors import (
    BadRequestError,
    ErrorAction,
    KieApiError,
    TaskFailedError,
    TaskTimeoutError,
    classify_error,
)
from kieai_kit.models import Task, TaskStatus
from kieai_kit.transport import Transport

DEFAULT_INTERVAL = 2.0
DEFAULT_TIMEOUT = 300.0
DEFAULT_MAX_ATTEMPTS = 300


class TaskPoller:
    """Fetches a task's status repeatedly until it succeeds, fails or the budget runs out.

    Args:
        transport: Transport bound to the API base URL.
        max_attempts: Default ceiling on status requests per poll.
        logger: Logger for poll tracing; defaults to the module logger.
        sleep: Coroutine used to wait between attempts.
        clock: Monotonic clock in seconds.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._transport = transport
        self.max_attempts = max_attempts
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._sleep = sleep
        self._clock = clock

    async def fetch(self, task_id: str, endpoint: str = DEFAULT_STATUS_PATH) -> Task:
        """Fetch one status snapshot of a task."""
        response = await self._transport.send("GET", endpoint, params={"taskId": task_id})
        data = unwrap_response(response.status_code, response.body)
        return Task.from_payload(data)

    async def poll(
        self,
        task_id: str,
        *,
        endpoint: str = DEFAULT_STATUS_PATH,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int | None = None,
    ) -> Task:
        """Poll a task until it reaches a terminal state.

        Args:
            task_id: Task to poll.
            endpoint: Status endpoint, queried with ``?taskId=<id>``.
            interval: Seconds to wait between attempts.
            timeout: Wall-clock budget in seconds.
            max_attempts: Attempt ceiling; defaults to the poller's.

        Returns:
            The successful task snapshot.

        Raises:
            TaskFailedError: The task failed or was cancelled.
            TaskTimeoutError: Either budget ran out before a terminal state.
            KieApiError: A fatal error (unauthorized, not found, bad request).
        """
        if not task_id:
            raise BadRequestError("Invalid task ID: task ID is empty", status_code=None)
        if interval < 0:
            raise ValueError(f"interval must not be negative, got {interval}")
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        limit = max_attempts if max_attempts is not None else self.max_attempts

        start = self._clock()
        attempts = 0
        while self._clock() - start < timeout and attempts < limit:
            attempts += 1
            try:
                task = await self.fetch(task_id, endpoint)
            except KieApiError as exc:
                if classify_error(exc) is ErrorAction.FATAL:
                    self._logger.debug("Task %s: fatal error on attempt %d: %s", task_id, attempts, exc)
                    raise
                self._logger.warning(
                    "Task %s: transient error, retrying in %.1fs (attempt %d/%d): %s",
                    task_id, interval, attempts, limit, exc,
                )
            else:
                task.validate()
                if task.status is TaskStatus.SUCCESS:
                    self._logger.debug("Task %s: success after %d attempts", task_id, attempts)
                    return task
                if task.status is TaskStatus.FAILED:
                    raise TaskFailedError(task.error_message or "Task failed without error message")
                if task.status is TaskStatus.CANCELLED:
                    raise TaskFailedError("Task was cancelled")
                self._logger.debug(
                    "Task %s: status=%s progress=%s (attempt %d/%d, %.0fs elapsed)",
                    task_id, task.status.value, task.progress, attempts, limit, self._clock() - start,
                )

            if attempts >= limit:
                break
            remaining = timeout - (self._clock() - start)
            await self._sleep(min(interval, max(0.0, remaining)))

        raise TaskTimeoutError(timeout, attempts)
