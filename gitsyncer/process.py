"""Step runners wrapping a single orchestration action."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, TypeVar

from .errors import ErrorChannel, SyncAbort

T = TypeVar("T")

logger = logging.getLogger('gitsyncer.process')


def _failure_reason(result: Any):
    """Return the failure reason of a command result, or None on success."""
    if getattr(result, "failed", False):
        return getattr(result, "reason", None) or "command failed"
    return None


def run_step(label: str, operation: Callable[[], T], channel: ErrorChannel) -> T:
    """
    Run one synchronous step with logging and uniform error translation.

    A failed command result or any raised exception is reported to the
    channel as a fatal error, so control never returns to the caller after
    a failure.

    Args:
        label: Human readable step label; empty suppresses progress logging
        operation: Zero-argument callable performing the step
        channel: Error channel receiving failures

    Returns:
        Whatever ``operation`` returned
    """
    if label:
        logger.info(f"{label}...", extra={'step': label})

    try:
        result = operation()
    except SyncAbort:
        raise
    except Exception as e:
        channel.fail(str(e))
        raise  # unreachable, fail() always raises

    reason = _failure_reason(result)
    if reason is not None:
        channel.fail(reason)

    output = getattr(result, "output", "")
    if output:
        logger.debug(output, extra={'step': label})

    if label:
        logger.info(f"{label} success", extra={'step': label})
    return result


async def run_step_async(label: str, operation: Callable[[], Awaitable[T]], channel: ErrorChannel) -> T:
    """Asynchronous variant of ``run_step``; plain output is logged on success."""
    if label:
        logger.info(f"{label}...", extra={'step': label})

    try:
        result = await operation()
    except SyncAbort:
        raise
    except Exception as e:
        channel.fail(str(e))
        raise  # unreachable, fail() always raises

    reason = _failure_reason(result)
    if reason is not None:
        channel.fail(reason)

    output = result if isinstance(result, str) else getattr(result, "output", "")
    if output:
        logger.info(output, extra={'step': label})

    if label:
        logger.info(f"{label} success", extra={'step': label})
    return result


def run_async(awaitable: Awaitable[T]) -> T:
    """
    Drive ``awaitable`` to completion from synchronous lifecycle code.

    Raises:
        RuntimeError: If called while an event loop is running in this thread
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        async def _await():
            return await awaitable
        return asyncio.run(_await())

    if inspect.iscoroutine(awaitable):
        awaitable.close()
    raise RuntimeError(
        "gitsyncer lifecycle operations block and cannot run inside an event loop; "
        "call them through asyncio.to_thread"
    )
