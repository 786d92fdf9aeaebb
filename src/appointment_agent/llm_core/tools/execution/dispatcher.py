"""Run every tool call of one model turn and collect one result per call."""

from __future__ import annotations

import asyncio
from typing import List, Sequence

from ...exceptions import ToolExecutionError
from ...logger import get_logger
from ..models import ToolCallRequest, ToolCallResult, TOOL_EXECUTION_ERROR
from .executor import ToolExecutor

logger = get_logger(__name__)


class TurnDispatcher:
    """Dispatches a batch of tool calls issued together by the model.

    Calls in a batch are independent, so by default they run concurrently.
    Results come back in request order and cover every request exactly once.
    """

    def __init__(self, executor: ToolExecutor, *, concurrent: bool = True) -> None:
        """Initialize the dispatcher.

        Args:
            executor: Executor used for each individual call.
            concurrent: Run the calls of a batch concurrently (default) or one after another.
        """
        self._executor = executor
        self._concurrent = concurrent

    async def dispatch_batch(self, requests: Sequence[ToolCallRequest]) -> List[ToolCallResult]:
        """Execute all requests of a batch.

        Args:
            requests: Tool calls from a single model response.

        Returns:
            One result per request, in request order.
        """
        if not requests:
            return []

        logger.info(f"Dispatching {len(requests)} tool call(s): {', '.join(r.name for r in requests)}")

        if self._concurrent:
            outcomes = await asyncio.gather(
                *(self._executor.execute(request) for request in requests),
                return_exceptions=True,
            )
        else:
            outcomes = []
            for request in requests:
                try:
                    outcomes.append(await self._executor.execute(request))
                except Exception as exc:
                    outcomes.append(exc)

        results: List[ToolCallResult] = []
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                # A broken executor still yields a failure result for its request
                logger.error(f"Executor failed for '{request.name}': {outcome}", exc_info=outcome)
                results.append(ToolCallResult.failure(request, f"Error executing function: {outcome}", TOOL_EXECUTION_ERROR))
            else:
                results.append(outcome)

        self._assert_coverage(requests, results)
        return results

    @staticmethod
    def _assert_coverage(requests: Sequence[ToolCallRequest], results: Sequence[ToolCallResult]) -> None:
        requested = [r.call_id for r in requests]
        answered = [r.call_id for r in results]
        if sorted(requested) != sorted(answered):
            raise ToolExecutionError(f"Tool results do not cover the batch: requested {requested}, answered {answered}.")
