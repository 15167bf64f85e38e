"""Chaining prompts into workflows.

A :class:`Workflow` is an ordered list of named steps.  Each step's compute
function receives a read-only view of the answers collected so far and
returns what should happen next: a prompt, any other awaitable, a nested
workflow, or a plain value.  The first cancelled step ends the run::

    results = await (
        Workflow()
        .step("name", lambda r: text("Project name?"))
        .step("install", lambda r: confirm(f"Install deps for {r['name']}?"))
        .on_cancel(lambda r: cancel("Aborted"))
        .run()
    )
"""

from __future__ import annotations

import inspect
import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping

from pi.prompts.cancellation import CancellationToken, is_cancel

logger = logging.getLogger(__name__)

Compute = Callable[[Mapping[str, Any]], Any]
CancelHook = Callable[[Mapping[str, Any]], Any]


class WorkflowResult(dict):
    """Answers keyed by step name, in step order."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.cancelled = False
        # Name of the step that was cancelled, if any
        self.cancelled_at: str | None = None

    def __repr__(self) -> str:
        flag = ", cancelled" if self.cancelled else ""
        return f"WorkflowResult({dict.__repr__(self)}{flag})"


class Workflow:
    def __init__(self, *, signal: CancellationToken | None = None) -> None:
        self.signal = signal
        self._steps: list[tuple[str, Compute]] = []
        self._on_cancel: CancelHook | None = None

    def step(self, key: str, compute: Compute) -> Workflow:
        """Append a step; returns the workflow so calls can be chained."""
        if any(existing == key for existing, _ in self._steps):
            raise ValueError(f"duplicate workflow step {key!r}")
        self._steps.append((key, compute))
        return self

    add = step

    def on_cancel(self, callback: CancelHook) -> Workflow:
        """Call *callback(partial_results)* if a step is cancelled."""
        self._on_cancel = callback
        return self

    @property
    def keys(self) -> list[str]:
        return [key for key, _ in self._steps]

    async def run(self) -> WorkflowResult:
        """Run the steps in order.

        Exceptions raised by a compute function, or by the prompt it
        returns, propagate unchanged; the remaining steps do not run.
        """
        results = WorkflowResult()
        for key, compute in self._steps:
            if self.signal is not None and self.signal.cancelled:
                await self._cancelled(results, key)
                return results

            logger.debug("workflow step %r started", key)
            value = await resolve_step(compute(MappingProxyType(dict(results))))

            if is_cancel(value) or (isinstance(value, WorkflowResult) and value.cancelled):
                if isinstance(value, WorkflowResult):
                    results[key] = value
                await self._cancelled(results, key)
                return results

            results[key] = value
            logger.debug("workflow step %r finished", key)
        return results

    async def _cancelled(self, results: WorkflowResult, key: str) -> None:
        logger.debug("workflow cancelled at step %r, skipping the rest", key)
        results.cancelled = True
        results.cancelled_at = key
        if self._on_cancel is not None:
            outcome = self._on_cancel(MappingProxyType(dict(results)))
            if inspect.isawaitable(outcome):
                await outcome


async def resolve_step(value: Any) -> Any:
    """Await *value* down to a plain answer, running nested workflows."""
    while True:
        if isinstance(value, Workflow):
            value = await value.run()
        elif inspect.isawaitable(value):
            value = await value
        else:
            return value


def workflow(*, signal: CancellationToken | None = None) -> Workflow:
    return Workflow(signal=signal)


async def group(
    steps: Mapping[str, Compute],
    *,
    on_cancel: CancelHook | None = None,
    signal: CancellationToken | None = None,
) -> WorkflowResult:
    """Run a mapping of ``name -> compute`` as one workflow."""
    flow = Workflow(signal=signal)
    for key, compute in steps.items():
        flow.step(key, compute)
    if on_cancel is not None:
        flow.on_cancel(on_cancel)
    return await flow.run()
