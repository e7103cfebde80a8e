"""TaskManager - dependency-aware task scheduler.

TaskManager owns a set of named tasks and runs them in dependency order
with bounded parallelism:

- Every task runs at most once per ``run()``; dependents wait for it.
- Ready tasks are admitted highest priority first (registration order
  breaks ties), never more than ``max_concurrency`` at a time.
- Failed attempts are retried according to the task's RetryPolicy.
- A failed or cancelled dependency fails its dependents.
- Cancellation flows from the root token to one child token per task.

Example:
    >>> manager = TaskManager(max_concurrency=2)
    >>> fetch = Task("fetch", fetch_users)
    >>> report = Task("report", build_report).add_dependency(fetch)
    >>> manager.add_task(fetch).add_task(report)
    >>> result = await manager.run()
    >>> result["report"].state
    <TaskState.COMPLETED: 'completed'>
"""

from __future__ import annotations

import asyncio
import heapq
import inspect
import logging
import threading
import time
from collections.abc import Callable
from graphlib import CycleError, TopologicalSorter
from typing import Any

from taskweave.core.cancellation import CancellationToken, CancelledException
from taskweave.core.errors import DependencyError, HookError, WiringError
from taskweave.core.run_logging import generate_run_id, log_event
from taskweave.sync.gate import BoundedGate
from taskweave.tasks.history import TaskHistory
from taskweave.tasks.task import Task
from taskweave.tasks.types import DependExecutionMode, RunReport, TaskSnapshot, TaskState

logger = logging.getLogger(__name__)

Hook = Callable[[], Any]


async def _invoke(fn: Callable[..., Any], *args: Any) -> Any:
    """Await coroutine functions; run plain callables on a worker thread."""
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)
    result = await asyncio.to_thread(fn, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _settle(done: asyncio.Future[None]) -> None:
    if not done.done():
        done.set_result(None)


class TaskManager:
    """Registry and scheduler for a graph of tasks.

    Args:
        max_concurrency: Maximum number of workers running at once (>= 1).
        turn_up: Optional hook run before any task. If it raises, no task
            runs and ``run()`` raises HookError.
        turn_down: Optional hook run after every task is terminal.
    """

    def __init__(
        self,
        max_concurrency: int,
        turn_up: Hook | None = None,
        turn_down: Hook | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._max_concurrency = max_concurrency
        self.turn_up = turn_up
        self.turn_down = turn_down
        self.turn_up_result: Any = None
        self.turn_down_result: Any = None

        self._tasks: dict[str, Task[Any, Any]] = {}
        self._tokens: dict[str, CancellationToken] = {}
        self._history = TaskHistory()
        self._lock = threading.RLock()

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @max_concurrency.setter
    def max_concurrency(self, value: int) -> None:
        if value < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._max_concurrency = value

    @property
    def tasks(self) -> dict[str, Task[Any, Any]]:
        """Registered tasks by name, in registration order."""
        with self._lock:
            return dict(self._tasks)

    @property
    def history(self) -> TaskHistory:
        return self._history

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def add_task(self, task: Task[Any, Any]) -> TaskManager:
        """Register a task.

        If a terminal task with the same name is already registered, its
        snapshot is archived into history and the new task takes its place.

        Returns:
            Self for chaining.

        Raises:
            WiringError: If a non-terminal task with the same name exists.
        """
        if not isinstance(task, Task):
            raise TypeError(f"expected a Task, got {type(task).__name__}")

        with self._lock:
            prior = self._tasks.get(task.name)
            if prior is task:
                return self
            if prior is not None:
                if not prior.is_terminal:
                    raise WiringError(
                        f"task '{task.name}' is already registered in state {prior.state.name}"
                    )
                self._history.append(prior.snapshot())
            self._tasks[task.name] = task
        return self

    def add_dependency(self, name: str, dep_name: str) -> TaskManager:
        """Make registered task ``name`` depend on registered task ``dep_name``.

        Raises:
            KeyError: If either task is not registered.
            WiringError: If the edge is a self-loop or closes a cycle.
        """
        with self._lock:
            task = self._require(name)
            dep = self._require(dep_name)
        task.add_dependency(dep)
        return self

    def get_task(self, name: str) -> Task[Any, Any] | None:
        with self._lock:
            return self._tasks.get(name)

    def list_tasks(self) -> list[str]:
        """Registered task names in registration order."""
        with self._lock:
            return list(self._tasks)

    def _require(self, name: str) -> Task[Any, Any]:
        task = self._tasks.get(name)
        if task is None:
            raise KeyError(f"unknown task '{name}'")
        return task

    def _resolve(self, task: Task[Any, Any]) -> list[Task[Any, Any]]:
        """Dependencies of ``task``, preferring the registered task per name."""
        return [self._tasks.get(name, dep) for name, dep in task.dependencies.items()]

    def _known_tasks(self) -> dict[str, Task[Any, Any]]:
        """Registered tasks plus every dependency reachable from them."""
        with self._lock:
            known = dict(self._tasks)
            queue = list(known.values())
            while queue:
                task = queue.pop(0)
                for dep in self._resolve(task):
                    if dep.name not in known:
                        known[dep.name] = dep
                        queue.append(dep)
            return known

    def _graph(self, known: dict[str, Task[Any, Any]]) -> dict[str, list[str]]:
        return {name: list(task.dependencies) for name, task in known.items()}

    def validate(self) -> list[str]:
        """Validate the task graph.

        Checks for:
        - Self-dependencies
        - Cycles (possible when a replaced task re-wires names)

        Returns:
            List of error messages (empty if valid).
        """
        errors: list[str] = []
        known = self._known_tasks()
        graph = self._graph(known)

        for name, deps in graph.items():
            if name in deps:
                errors.append(f"Task '{name}' depends on itself")

        if not errors:
            try:
                TopologicalSorter(graph).prepare()
            except CycleError as e:
                cycle = " -> ".join(e.args[1])
                errors.append(f"Cycle detected: {cycle}")

        return errors

    def execution_order(self) -> list[str]:
        """Get topological execution order.

        Tasks are taken one at a time: the next one is the highest priority
        task whose dependencies are all done, registration order breaking
        ties. This is the order a run with ``max_concurrency=1`` admits
        tasks in CONCURRENT dependency mode.

        Raises:
            WiringError: If the graph is invalid.
        """
        errors = self.validate()
        if errors:
            raise WiringError(f"Invalid task graph: {errors}")

        known = self._known_tasks()
        rank = {name: i for i, name in enumerate(known)}
        sorter = TopologicalSorter(self._graph(known))
        sorter.prepare()

        ready: list[tuple[int, int, str]] = []
        order: list[str] = []
        while sorter.is_active():
            for name in sorter.get_ready():
                heapq.heappush(ready, (-known[name].priority, rank[name], name))
            _, _, name = heapq.heappop(ready)
            order.append(name)
            sorter.done(name)
        return order

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self, name: str, reason: str | None = None) -> None:
        """Cancel one task.

        A pending task becomes CANCELLED immediately and its worker never
        runs. A running task has its token cancelled; the worker is
        expected to notice and return. Terminal tasks are left alone.

        Raises:
            KeyError: If no task with that name is registered.
        """
        with self._lock:
            task = self._require(name)
            if task.is_terminal:
                return
            token = self._tokens.get(name)
            if token is not None:
                token.cancel(reason or f"task '{name}' cancelled")
            if task.state is TaskState.PENDING:
                task._mark_cancelled(CancelledException(reason or f"task '{name}' cancelled"))
        logger.debug("task_cancel_requested: task=%s, state=%s", name, task.state.value)

    def cancel_all(self, reason: str | None = None) -> None:
        """Cancel every registered task."""
        for name in self.list_tasks():
            self.cancel(name, reason)

    def get_task_history(self, name: str) -> list[TaskSnapshot]:
        """Archived executions of ``name``, oldest first. The live task is excluded."""
        return self._history.get(name)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, token: CancellationToken | None = None) -> RunReport:
        """Run every non-terminal task and wait until all are terminal.

        Task failures never abort the run: each one is recorded on its
        task and reflected in the returned report.

        Args:
            token: Root cancellation token. Cancelling it cancels every
                task token; tasks that have not started end CANCELLED.

        Returns:
            RunReport with a snapshot of every task.

        Raises:
            WiringError: If the graph contains a cycle.
            HookError: If turn_up or turn_down raises.
        """
        errors = self.validate()
        if errors:
            raise WiringError(f"Invalid task graph: {errors}")

        root = token or CancellationToken()
        run_id = generate_run_id()
        start_mono = time.monotonic()

        self._register_implicit(run_id)
        with self._lock:
            launch = [t for t in self._tasks.values() if not t.is_terminal]
            rank = {name: i for i, name in enumerate(self._tasks)}
        launch.sort(key=lambda t: (-t.priority, rank[t.name]))

        log_event(
            logger,
            logging.DEBUG,
            run_id,
            "run_start",
            tasks=len(launch),
            max_concurrency=self._max_concurrency,
        )

        if self.turn_up is not None:
            self.turn_up_result = await self._run_hook(run_id, "turn_up", self.turn_up)

        loop = asyncio.get_running_loop()
        gate = BoundedGate(limit=self._max_concurrency)
        futures: dict[str, asyncio.Task[None]] = {}
        settled: dict[str, asyncio.Future[None]] = {}

        def ensure(task: Task[Any, Any]) -> asyncio.Future[None]:
            done = settled.get(task.name)
            if done is not None:
                return done
            done = settled[task.name] = loop.create_future()
            futures[task.name] = asyncio.create_task(
                self._execute(run_id, task, root, gate, ensure, rank, done),
                name=f"taskweave:{task.name}",
            )
            # Start the whole CONCURRENT subgraph now so that every task
            # ready at the same moment reaches the gate in the same iteration
            if task.depend_execution_mode is DependExecutionMode.CONCURRENT:
                for dep in self._resolve(task):
                    ensure(dep)
            return done

        # Tasks nobody waits on start here; the rest are started by their
        # dependents so that depend_execution_mode decides the order.
        awaited = {name for t in launch for name in t.dependencies}
        try:
            for task in launch:
                if task.name not in awaited:
                    ensure(task)
            while True:
                while not all(f.done() for f in futures.values()):
                    await asyncio.gather(*list(futures.values()))
                # Dependencies of tasks that ended before starting them
                leftovers = [t for t in launch if not t.is_terminal and t.name not in futures]
                if not leftovers:
                    break
                for task in leftovers:
                    ensure(task)
        finally:
            for future in futures.values():
                if not future.done():
                    future.cancel()
            with self._lock:
                self._tokens.clear()

        if self.turn_down is not None:
            self.turn_down_result = await self._run_hook(run_id, "turn_down", self.turn_down)

        duration = time.monotonic() - start_mono
        with self._lock:
            snapshots = {name: task.snapshot() for name, task in self._tasks.items()}
        report = RunReport(
            run_id=run_id,
            tasks=snapshots,
            duration=duration,
            turn_up_result=self.turn_up_result,
            turn_down_result=self.turn_down_result,
        )
        log_event(
            logger,
            logging.DEBUG,
            run_id,
            "run_complete",
            duration_s=duration,
            success=report.success,
            failed=len(report.failed()),
        )
        return report

    def _register_implicit(self, run_id: str) -> None:
        with self._lock:
            for name, task in self._known_tasks().items():
                if name not in self._tasks:
                    self._tasks[name] = task
                    log_event(logger, logging.INFO, run_id, "task_registered_implicitly", task=name)

    async def _run_hook(self, run_id: str, hook: str, fn: Hook) -> Any:
        start_mono = time.monotonic()
        try:
            result = await _invoke(fn)
        except Exception as e:
            log_event(logger, logging.ERROR, run_id, f"{hook}_failed", error=e)
            raise HookError(hook, e) from e
        log_event(
            logger,
            logging.DEBUG,
            run_id,
            f"{hook}_complete",
            duration_s=time.monotonic() - start_mono,
        )
        return result

    async def _execute(
        self,
        run_id: str,
        task: Task[Any, Any],
        root: CancellationToken,
        gate: BoundedGate,
        ensure: Callable[[Task[Any, Any]], asyncio.Future[None]],
        rank: dict[str, int],
        done: asyncio.Future[None],
    ) -> None:
        try:
            await self._admit(run_id, task, root, gate, ensure, rank, done)
        finally:
            _settle(done)

    async def _admit(
        self,
        run_id: str,
        task: Task[Any, Any],
        root: CancellationToken,
        gate: BoundedGate,
        ensure: Callable[[Task[Any, Any]], asyncio.Future[None]],
        rank: dict[str, int],
        done: asyncio.Future[None],
    ) -> None:
        name = task.name
        with self._lock:
            if task.is_terminal:
                return
            token = root.child()
            self._tokens[name] = token
            if token.is_cancelled:
                self._cancel_pending(run_id, task, token)
                return

        # Awaiting the settle futures directly wakes a dependent in the
        # iteration after its last dependency settles, ahead of the dispatch.
        deps = self._resolve(task)
        if task.depend_execution_mode is DependExecutionMode.SEQUENTIAL:
            deps.sort(key=lambda d: (-d.priority, rank.get(d.name, 0)))
        for dep in deps:
            await ensure(dep)

        with self._lock:
            if task.is_terminal:
                return
            failure = self._dependency_failure(deps)
            if failure is not None:
                task._mark_failed(failure)
                log_event(
                    logger,
                    logging.WARNING,
                    run_id,
                    "task_dependency_failed",
                    task=name,
                    error=failure,
                )
                return
            if token.is_cancelled:
                self._cancel_pending(run_id, task, token)
                return

        await gate.acquire(task.priority, rank.get(name, len(rank)))
        try:
            with self._lock:
                if task.is_terminal:
                    return
                if token.is_cancelled:
                    self._cancel_pending(run_id, task, token)
                    return
                task._mark_running()
            await self._run_worker(run_id, task, token)
        finally:
            # Dependents queue up before the slot is handed on
            _settle(done)
            gate.release()

    def _cancel_pending(self, run_id: str, task: Task[Any, Any], token: CancellationToken) -> None:
        task._mark_cancelled(CancelledException(token.reason or "operation cancelled"))
        log_event(logger, logging.WARNING, run_id, "task_cancelled", task=task.name)

    def _dependency_failure(self, deps: list[Task[Any, Any]]) -> DependencyError | None:
        for dep in deps:
            if dep.state is TaskState.FAILED:
                return DependencyError(dep.name, dep.error)
            if dep.state is TaskState.CANCELLED:
                return DependencyError(dep.name, cancelled=True)
            if dep.state is not TaskState.COMPLETED:
                return DependencyError(dep.name, RuntimeError(f"ended in state {dep.state.name}"))
        return None

    async def _run_worker(
        self,
        run_id: str,
        task: Task[Any, Any],
        token: CancellationToken,
    ) -> None:
        name = task.name
        policy = task.retry_policy
        start_mono = time.monotonic()
        log_event(logger, logging.DEBUG, run_id, "task_start", task=name, priority=task.priority)

        while True:
            try:
                result = await _invoke(task.worker, token, task.input)
            except Exception as e:
                if token.is_cancelled or not policy.should_retry(task.retry_count):
                    task._mark_failed(e)
                    log_event(
                        logger,
                        logging.ERROR,
                        run_id,
                        "task_failed",
                        duration_s=time.monotonic() - start_mono,
                        task=name,
                        retries=task.retry_count,
                        error=e,
                    )
                    return

                delay = policy.get_delay_for_retry(task.retry_count)
                log_event(
                    logger,
                    logging.WARNING,
                    run_id,
                    "task_retry",
                    task=name,
                    attempt=task.retry_count + 1,
                    max_retries=policy.max_retries,
                    delay_ms=int(delay * 1000),
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if await token.sleep(delay):
                    task._mark_failed(e)
                    log_event(logger, logging.WARNING, run_id, "task_retry_cancelled", task=name)
                    return
                task._record_retry()
                continue
            break

        task._mark_completed(result)
        log_event(
            logger,
            logging.DEBUG,
            run_id,
            "task_complete",
            duration_s=time.monotonic() - start_mono,
            task=name,
        )

        if task.success_callback is not None:
            try:
                new_result = await _invoke(task.success_callback, result)
            except Exception as e:
                task._record_callback(None, e)
                log_event(
                    logger,
                    logging.WARNING,
                    run_id,
                    "task_callback_failed",
                    task=name,
                    error=e,
                )
            else:
                task._record_callback(new_result, None)

    def __repr__(self) -> str:
        return f"TaskManager(tasks={len(self._tasks)}, max_concurrency={self._max_concurrency})"
