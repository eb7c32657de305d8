"""Run orchestrator: discover -> classify units concurrently -> aggregate reports.

Each run moves through ``IDLE -> DISCOVERING -> CLASSIFYING -> AGGREGATING
-> COMPLETED | FAILED``. Classification fans out to a thread pool, one task
per unit, behind a ``CapacityGate``. Every completion is merged by a single
aggregation loop on the event loop, so reports never see two writers.
"""

from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from type_deps.analysis import ExclusionPolicy, classify
from type_deps.backpressure import CapacityGate
from type_deps.errors import AnalysisError, CapacityExceeded, UnitTimeout, UnreadableSource
from type_deps.models import (
    AnalysisConfig,
    FailurePolicy,
    RunState,
    UnitFailure,
)
from type_deps.report.models import GroupingReport, UnitReport, WholeTreeReport
from type_deps.resolver import JavaTypeResolver
from type_deps.scanner import Discovery, SourceScanner

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]
UnitCallback = Callable[[UnitReport], None]
ResolverFactory = Callable[[Path, Iterable[Path]], JavaTypeResolver]

_ACTIVE_STATES = {RunState.DISCOVERING, RunState.CLASSIFYING, RunState.AGGREGATING}


@dataclass
class AnalysisResult:
    """Outcome of a completed run."""
    report: WholeTreeReport
    failures: list[UnitFailure] = field(default_factory=list)
    state: RunState = RunState.COMPLETED

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        data = self.report.to_dict()
        data["state"] = self.state.value
        data["failures"] = [f.to_dict() for f in self.failures]
        return data


def classify_file(resolver: JavaTypeResolver, path: Path, policy: ExclusionPolicy) -> UnitReport:
    """Read, parse and classify one unit. Runs on a worker thread."""
    return classify(resolver.load(path), policy)


@dataclass
class _Completion:
    path: Path | None
    directory: Path | None
    report: UnitReport | None = None
    error: Exception | None = None
    admitted: bool = True


_PRODUCER_DONE = object()


class Orchestrator:
    """Schedules unit classification and merges results into a tree report.

    Args:
        config: Run configuration (limits, timeouts, policies).
        resolver_factory: Builds the shared, read-only resolver from the
            discovered units. Called once per run before any task starts.
        progress: ``progress(stage, current, total)`` callback.
        on_unit: Called with every unit report as it is merged.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        resolver_factory: ResolverFactory | None = None,
        progress: ProgressCallback | None = None,
        on_unit: UnitCallback | None = None,
    ):
        self.config = config or AnalysisConfig()
        self.policy = ExclusionPolicy.from_config(self.config)
        self._resolver_factory = resolver_factory or JavaTypeResolver.configure
        self._progress = progress
        self.on_unit = on_unit
        self._scanner = SourceScanner(self.config.extensions, self.config.skip_dirs)
        self.state = RunState.IDLE
        self.history: list[RunState] = [RunState.IDLE]

    @property
    def max_workers(self) -> int:
        return self.config.max_workers or min(32, (os.cpu_count() or 1) + 4)

    def transition(self, state: RunState) -> None:
        logger.debug("Run state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def report_progress(self, stage: str, current: int, total: int) -> None:
        if self._progress:
            self._progress(stage, current, total)

    async def analyze(self, root: Path) -> AnalysisResult:
        """Analyze every unit below ``root``.

        Under ``FailurePolicy.FAIL_FAST`` the first unit failure aborts the
        run and is raised. ``CapacityExceeded`` and ``InvalidRoot`` are
        always raised.
        """
        self._begin()
        root = Path(root)
        try:
            self.report_progress("Discovering", 0, 1)
            discovery = await asyncio.to_thread(self._scanner.discover, root)
            self.report_progress("Discovering", 1, 1)
        except BaseException:
            self.transition(RunState.FAILED)
            raise
        logger.info(
            "Analyzing %s: %d units in %d groupings",
            root, discovery.unit_count, len(discovery.groupings),
        )
        return await self._execute(discovery, _tree_name(root))

    def analyze_sync(self, root: Path) -> AnalysisResult:
        return asyncio.run(self.analyze(root))

    async def analyze_grouping(self, directory: Path) -> GroupingReport:
        """Analyze the units directly inside ``directory`` (no recursion)."""
        self._begin()
        directory = Path(directory)
        try:
            units = await asyncio.to_thread(self._scanner.units_in, directory)
        except BaseException:
            self.transition(RunState.FAILED)
            raise
        discovery = Discovery(
            root=await asyncio.to_thread(self._source_root, directory),
            groupings={directory: tuple(units)} if units else {},
        )
        result = await self._execute(discovery, _tree_name(directory))
        for grouping in result.report.groupings.values():
            return grouping
        return GroupingReport(self._infer_name(JavaTypeResolver(), directory))

    async def analyze_unit(self, path: Path) -> UnitReport:
        """Analyze a single source file.

        Units next to ``path`` are indexed too, so same-package references
        resolve to qualified names.
        """
        path = Path(path)
        if not path.is_file():
            raise UnreadableSource(f"{path} is not a file", unit=path)
        units = set(await asyncio.to_thread(self._scanner.units_in, path.parent)) | {path}
        root = await asyncio.to_thread(self._source_root, path.parent)
        resolver = await asyncio.to_thread(self._resolver_factory, root, sorted(units))
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, classify_file, resolver, path, self.policy)
        try:
            return await asyncio.wait_for(future, self.config.unit_timeout)
        except asyncio.TimeoutError:
            raise _timeout_error(path, self.config.unit_timeout) from None

    def _begin(self) -> None:
        if self.state in _ACTIVE_STATES:
            raise RuntimeError("An analysis is already running on this orchestrator")
        self.state = RunState.IDLE
        self.history = [RunState.IDLE]
        self.transition(RunState.DISCOVERING)

    def _infer_name(self, resolver: JavaTypeResolver, directory: Path) -> str:
        try:
            return resolver.infer_package(directory, self.config.extensions)
        except OSError:
            return directory.name

    def _source_root(self, directory: Path) -> Path:
        """Directory that ``directory``'s package path is relative to.

        ``/src/com/acme`` holding ``package com.acme;`` units gives ``/src``.
        Falls back to ``directory`` when the path does not end in the package.
        """
        parts = tuple(self._infer_name(JavaTypeResolver(), directory).split("."))
        if len(parts) <= len(directory.parts) and directory.parts[-len(parts):] == parts:
            return directory.parents[len(parts) - 1]
        return directory

    async def _execute(self, discovery: Discovery, tree_name: str) -> AnalysisResult:
        loop = asyncio.get_running_loop()
        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="type-deps")
        try:
            # Resolver state is fixed here, before any classification starts.
            resolver = await loop.run_in_executor(
                pool, self._resolver_factory, discovery.root, list(discovery.iter_units()),
            )
            directories = list(discovery.groupings)
            names = await asyncio.gather(*(
                loop.run_in_executor(pool, self._infer_name, resolver, d)
                for d in directories
            ))
            run = _Run(self, discovery, resolver, pool, dict(zip(directories, names)), tree_name)
            result = await run.execute()
        except BaseException:
            self.transition(RunState.FAILED)
            raise
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
        self.transition(RunState.COMPLETED)
        logger.info(
            "Analysis of %s completed: %d groupings, %d units, %d dependencies, %d failures",
            tree_name, result.report.grouping_count(), result.report.unit_count(),
            result.report.total_dependency_count(), len(result.failures),
        )
        return result


class _Run:
    """State of one fan-out/fan-in pass over a discovery."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        discovery: Discovery,
        resolver: JavaTypeResolver,
        pool: ThreadPoolExecutor,
        grouping_names: dict[Path, str],
        tree_name: str,
    ):
        config = orchestrator.config
        self.orchestrator = orchestrator
        self.config = config
        self.discovery = discovery
        self.resolver = resolver
        self.pool = pool
        self.grouping_names = grouping_names
        self.gate = CapacityGate(config.backpressure_limit, config.overflow, config.admission_timeout)
        self.workers = asyncio.Semaphore(orchestrator.max_workers)
        self.completions: asyncio.Queue = asyncio.Queue()
        self.tasks: set[asyncio.Task] = set()
        self.futures: set[asyncio.Future] = set()
        self.aborted = False

        self.tree = WholeTreeReport(tree_name)
        self.groupings: dict[str, GroupingReport] = {}
        self.pending: dict[str, int] = {}
        for directory, units in discovery.groupings.items():
            name = grouping_names[directory]
            self.groupings.setdefault(name, GroupingReport(name))
            self.pending[name] = self.pending.get(name, 0) + len(units)

        self.total = discovery.unit_count
        self.scheduled = 0
        self.handled = 0
        self.merged: set[Path] = set()
        self.failures: list[UnitFailure] = []

    async def execute(self) -> AnalysisResult:
        self.orchestrator.transition(RunState.CLASSIFYING)
        producer = asyncio.create_task(self._produce())
        producer_done = False
        try:
            while not (producer_done and self.handled == self.scheduled):
                item = await self.completions.get()
                if item is _PRODUCER_DONE:
                    producer_done = True
                    self.orchestrator.transition(RunState.AGGREGATING)
                    continue
                self._handle(item)
            # Surfaces unexpected producer errors.
            await producer
        except BaseException:
            await self._abort(producer)
            raise
        finally:
            self._drop_futures()
        return AnalysisResult(report=self.tree, failures=self.failures)

    async def _produce(self) -> None:
        try:
            for directory, units in self.discovery.groupings.items():
                for path in units:
                    if self.aborted:
                        return
                    await self.gate.acquire(path)
                    task = asyncio.create_task(self._classify(path, directory))
                    self.tasks.add(task)
                    task.add_done_callback(self.tasks.discard)
                    self.scheduled += 1
                    # Let finished units drain between admissions.
                    await asyncio.sleep(0)
        except CapacityExceeded as e:
            self.completions.put_nowait(_Completion(e.unit, None, error=e, admitted=False))
        finally:
            self.completions.put_nowait(_PRODUCER_DONE)

    async def _classify(self, path: Path, directory: Path) -> None:
        loop = asyncio.get_running_loop()
        try:
            await self.workers.acquire()
            future = loop.run_in_executor(
                self.pool, classify_file, self.resolver, path, self.orchestrator.policy,
            )
            # Slot is held until the thread finishes, timed out or not.
            future.add_done_callback(self._release_worker)
            self.futures.add(future)
            report = await asyncio.wait_for(asyncio.shield(future), self.config.unit_timeout)
        except asyncio.TimeoutError:
            error: Exception = _timeout_error(path, self.config.unit_timeout)
            completion = _Completion(path, directory, error=error)
        except AnalysisError as e:
            if e.unit is None:
                e.unit = path
            completion = _Completion(path, directory, error=e)
        except Exception as e:
            error = AnalysisError(f"Error analyzing {path.name}: {e}", unit=path)
            error.__cause__ = e
            completion = _Completion(path, directory, error=error)
        else:
            completion = _Completion(path, directory, report=report)
        self.completions.put_nowait(completion)

    def _release_worker(self, future: asyncio.Future) -> None:
        self.futures.discard(future)
        self.workers.release()
        if not future.cancelled():
            # Marks a result nobody awaits any more (timed out or aborted) as retrieved.
            future.exception()

    def _drop_futures(self) -> None:
        """Detach from threads still running after a timeout or an abort."""
        for future in list(self.futures):
            future.cancel()

    def _handle(self, item: _Completion) -> None:
        if not item.admitted:
            logger.error("Aborting run: %s", item.error)
            raise item.error

        self.handled += 1
        self.gate.release()
        name = self.grouping_names[item.directory]

        if item.error is not None:
            if self.config.failure_policy is FailurePolicy.FAIL_FAST:
                logger.error("Aborting run on %s: %s", item.path, item.error)
                raise item.error
            logger.warning("Skipping %s: %s", item.path, item.error)
            self.failures.append(UnitFailure(item.path, item.error))
        else:
            self._merge(item, name)

        self.pending[name] -= 1
        if self.pending[name] == 0 and self.groupings[name].unit_count():
            self.tree.add_grouping(self.groupings[name])
        self.orchestrator.report_progress("Classifying", self.handled, self.total)

    def _merge(self, item: _Completion, name: str) -> None:
        if item.path in self.merged:
            raise RuntimeError(f"{item.path} was merged twice")
        self.merged.add(item.path)
        self.groupings[name].add_unit(item.report)
        logger.debug(
            "Merged %s into %s (%d dependencies)",
            item.report.unit_name, name, item.report.dependency_count(),
        )
        if self.orchestrator.on_unit:
            self.orchestrator.on_unit(item.report)

    async def _abort(self, producer: asyncio.Task) -> None:
        """Stop scheduling and drop in-flight work. Running threads finish on their own."""
        self.aborted = True
        producer.cancel()
        pending = [producer, *self.tasks]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


def _timeout_error(path: Path, timeout: float | None) -> UnitTimeout:
    return UnitTimeout(f"Classifying {path.name} took longer than {timeout}s", unit=path)


def _tree_name(root: Path) -> str:
    return root.name or root.resolve().name or str(root)
