"""
Wave Function Collapse solver.

This is the heart of WFC - the loop that observes (collapses) cells
and propagates constraints until the entire grid is determined.

The algorithm:
1. Find the cell with lowest entropy (most constrained)
2. Collapse it to one tile (weighted random choice)
3. Propagate: update neighbors based on adjacency rules
4. Repeat until complete or contradiction

A contradiction is an expected outcome, not a bug. The solver first tries
to undo recent decisions (when backtracking is enabled), then restarts the
attempt with a fresh seed, and finally reports failure once the retry
budget is spent. It never returns a partial map.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Callable, Hashable, Iterator, Mapping, Protocol

from wfc_terrain.logging_config import (
    log_attempt,
    log_backtrack,
    log_contradiction,
    log_result,
)
from .config import EdgeMode, SolverConfig
from .errors import ConfigError, Contradiction, SolveFailed
from .grid import Grid
from .propagator import propagate_many
from .rules import RuleTable
from .strategy import CollapseStrategy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CancelToken(Protocol):
    """Anything with is_set(), e.g. threading.Event or asyncio.Event."""

    def is_set(self) -> bool: ...


class SolverState(Enum):
    """The current state of the WFC solver."""
    INITIALIZING = auto()  # Building a fresh grid for a new attempt
    COLLAPSING = auto()    # Picking the next cell and its tile
    PROPAGATING = auto()   # Spreading the consequences of the last change
    CONTRADICTED = auto()  # Some cell has 0 possibilities
    RETRYING = auto()      # Giving up on this attempt, starting a new one
    SUCCEEDED = auto()     # All cells collapsed successfully
    EXHAUSTED = auto()     # Every attempt ended in a contradiction
    CANCELLED = auto()     # Stopped from outside
    TIMED_OUT = auto()     # Cycle or wall-clock budget spent

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    SolverState.SUCCEEDED,
    SolverState.EXHAUSTED,
    SolverState.CANCELLED,
    SolverState.TIMED_OUT,
})


class FailureReason(Enum):
    """Why a solve produced no map."""
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class Failure:
    """Typed failure report handed to the caller."""
    reason: FailureReason
    attempts: int
    message: str = ""


@dataclass(frozen=True)
class SolveResult:
    """
    Outcome of a solve.

    On success `mapping` holds a tile id for every coordinate; on failure it
    is empty and `failure` says why.
    """
    success: bool
    mapping: Mapping[Hashable, str] = field(default_factory=lambda: MappingProxyType({}))
    failure: Failure | None = None
    attempts: int = 0
    seed: int | None = None
    cycles: int = 0
    backtracks: int = 0

    @classmethod
    def ok(
        cls,
        mapping: Mapping[Hashable, str],
        attempts: int,
        seed: int | None,
        cycles: int,
        backtracks: int = 0,
    ) -> SolveResult:
        """Create a successful result."""
        return cls(
            success=True,
            mapping=MappingProxyType(dict(mapping)),
            attempts=attempts,
            seed=seed,
            cycles=cycles,
            backtracks=backtracks,
        )

    @classmethod
    def fail(
        cls,
        reason: FailureReason,
        attempts: int,
        message: str,
        seed: int | None = None,
        cycles: int = 0,
        backtracks: int = 0,
    ) -> SolveResult:
        """Create a failed result."""
        return cls(
            success=False,
            failure=Failure(reason=reason, attempts=attempts, message=message),
            attempts=attempts,
            seed=seed,
            cycles=cycles,
            backtracks=backtracks,
        )

    def unwrap(self) -> Mapping[Hashable, str]:
        """
        Return the mapping, or raise if the solve failed.

        Raises:
            SolveFailed: Carrying the Failure
        """
        if not self.success:
            raise SolveFailed(self.failure)
        return self.mapping


class WFCSolver:
    """
    The WFC algorithm as an explicit state machine.

    Usage:
        solver = WFCSolver(config)
        while not solver.state.terminal:
            solver.step()
        result = solver.result

    Or for bulk solving:
        result = solver.run()

    Or one collapse+propagate cycle at a time (e.g. between frames):
        for state in solver.iter_cycles():
            ...

    Supports backtracking on contradiction:
        SolverConfig(..., backtrack_depth=50, max_backtracks=200)
    """

    def __init__(self, config: SolverConfig, rules: RuleTable | None = None):
        """
        Initialize the solver.

        Args:
            config: What to solve
            rules: Prebuilt rule table to share between solvers; built from the
                   config's catalog and topology if omitted

        Raises:
            ConfigError: If the catalog or the fixed cells are invalid
        """
        self.config = config
        self.topology = config.build_topology()
        self.rules = rules or RuleTable.build(
            config.catalog,
            self.topology,
            predicate=config.predicate,
            strict_sockets=config.strict_sockets,
        )
        self.strategy = CollapseStrategy(self.rules)

        self.fixed_cells: dict[Hashable, str] = {}
        canonical = {coord: coord for coord in self.topology.coords()}
        for coord, tile_id in config.fixed_cells.items():
            if not self.topology.contains(coord):
                raise ConfigError(f"Fixed cell {coord!r} is outside the grid")
            self.fixed_cells[canonical[coord]] = tile_id

        self.seed = config.seed if config.seed is not None else random.SystemRandom().getrandbits(32)
        self._seed_source = random.Random(self.seed)
        self.max_attempts = config.max_retries + 1

        self.state = SolverState.INITIALIZING
        self.grid: Grid | None = None
        self.rng: random.Random | None = None
        self.result: SolveResult | None = None

        self.attempt = 0
        self.cycles = 0
        self.backtracks = 0
        self._attempt_backtracks = 0
        self._decisions: deque[tuple[Hashable, str]] = deque(maxlen=config.backtrack_depth or None)
        self._pending: list[Hashable] = []
        self._contradiction: Contradiction | None = None
        self._cancel_requested = False
        self._started_at: float | None = None

        # Track the last collapsed cell and the cells modified in the last
        # propagation (for visualization/debugging)
        self.last_collapsed: Hashable | None = None
        self.last_propagated: set[Hashable] = set()

    @property
    def total_cells(self) -> int:
        return self.topology.size

    @property
    def collapsed_count(self) -> int:
        """Number of collapsed cells in the current attempt."""
        return self.grid.collapsed_count if self.grid is not None else 0

    def cancel(self) -> None:
        """Ask the solver to stop; takes effect at the next cycle boundary."""
        self._cancel_requested = True

    # -------------------------------------------------------------------------
    # Driving the state machine
    # -------------------------------------------------------------------------

    def step(self) -> SolverState:
        """
        Perform one state transition.

        Returns the state after the transition. Calling step() in a
        terminal state does nothing.
        """
        if self.state.terminal:
            return self.state
        if self._started_at is None:
            self._started_at = time.monotonic()

        handler = {
            SolverState.INITIALIZING: self._initialize,
            SolverState.COLLAPSING: self._collapse,
            SolverState.PROPAGATING: self._propagate,
            SolverState.CONTRADICTED: self._handle_contradiction,
            SolverState.RETRYING: self._retry,
        }[self.state]
        self.state = handler()
        return self.state

    def iter_cycles(self, cancel: CancelToken | None = None) -> Iterator[SolverState]:
        """
        Run the solver one collapse+propagate cycle at a time.

        Yields after every finished propagation and once more with the
        terminal state. Stopping the iteration early simply abandons the
        attempt; nothing outside this solver is touched.
        """
        while not self.state.terminal:
            if cancel is not None and cancel.is_set():
                self.cancel()
            state = self.step()
            if state is SolverState.COLLAPSING or state.terminal:
                yield state

    def run(
        self,
        cancel: CancelToken | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> SolveResult:
        """
        Run the solver to completion.

        Args:
            cancel: Checked between cycles; when set the solve ends as CANCELLED
            progress_callback: Optional callback(collapsed, total_cells) after each cycle

        Returns:
            The SolveResult (success or a typed failure)
        """
        for _ in self.iter_cycles(cancel):
            if progress_callback is not None:
                progress_callback(self.collapsed_count, self.total_cells)
        return self.result

    # -------------------------------------------------------------------------
    # States
    # -------------------------------------------------------------------------

    def _initialize(self) -> SolverState:
        """Start a new attempt with a fresh grid and a derived seed."""
        if self._cancel_requested:
            return self._finish_cancelled()
        if self._budget_spent():
            return self._finish_timed_out()

        self.attempt += 1
        attempt_seed = self._seed_source.getrandbits(64)
        self.rng = random.Random(attempt_seed)
        self.grid = Grid(
            self.topology,
            self.rules.tile_ids,
            max_checkpoints=self.config.backtrack_depth or None,
        )
        self._decisions.clear()
        self._attempt_backtracks = 0
        self._contradiction = None
        self.last_collapsed = None
        self.last_propagated = set()

        log_attempt(logger, self.attempt, self.max_attempts, "START", f"seed={attempt_seed}")

        if self.config.edge_mode is EdgeMode.BORDER:
            border = self.config.border_tile
            for coord in self.topology.coords():
                for direction in self.topology.missing_directions(coord):
                    # The border sits on `direction`, so the cell sits opposite of it
                    allowed = self.rules.allowed(self.topology.opposite(direction), border)
                    self.grid.restrict(coord, allowed)
                if self.grid.is_contradicted(coord):
                    self._contradiction = Contradiction(coord)
                    return SolverState.CONTRADICTED

        for coord, tile_id in self.fixed_cells.items():
            self.grid.collapse(coord, tile_id)
            if self.grid.is_contradicted(coord):
                self._contradiction = Contradiction(coord)
                return SolverState.CONTRADICTED

        # One full pass so every cell starts arc-consistent with the rules,
        # the edge constraints and the fixed cells
        self._pending = list(self.topology.coords())
        return SolverState.PROPAGATING

    def _collapse(self) -> SolverState:
        """Observe the most constrained cell."""
        if self._cancel_requested:
            return self._finish_cancelled()

        grid = self.grid
        coord = self.strategy.select_cell(grid)
        if coord is None:
            if grid.is_fully_collapsed():
                return self._finish_succeeded()
            # Only reachable if a contradiction slipped past propagation
            empty = next(c for c in grid.coords() if grid.is_contradicted(c))
            self._contradiction = Contradiction(empty)
            return SolverState.CONTRADICTED

        if self._budget_spent():
            return self._finish_timed_out()

        tile_id = self.strategy.select_tile(grid, coord, self.rng)
        if self.config.backtrack_depth:
            grid.checkpoint()
            self._decisions.append((coord, tile_id))

        grid.collapse(coord, tile_id)
        self.cycles += 1
        self.last_collapsed = coord
        self._pending = [coord]
        return SolverState.PROPAGATING

    def _propagate(self) -> SolverState:
        """Propagate constraints from the cells changed last."""
        pending, self._pending = self._pending, []
        try:
            self.last_propagated = propagate_many(self.grid, self.rules, pending)
        except Contradiction as exc:
            self._contradiction = exc
            return SolverState.CONTRADICTED
        return SolverState.COLLAPSING

    def _handle_contradiction(self) -> SolverState:
        """Handle a contradiction by backtracking, restarting or giving up."""
        coord = self._contradiction.coord if self._contradiction else None
        log_contradiction(logger, self.attempt, coord, self.grid.collapsed_count, self.total_cells)

        if self._backtrack():
            return SolverState.PROPAGATING

        if self.attempt < self.max_attempts:
            return SolverState.RETRYING

        message = f"No valid map after {self.attempt} attempt(s)"
        logger.warning(message)
        return self._finish(
            SolverState.EXHAUSTED,
            SolveResult.fail(
                FailureReason.EXHAUSTED,
                self.attempt,
                message,
                seed=self.seed,
                cycles=self.cycles,
                backtracks=self.backtracks,
            ),
        )

    def _retry(self) -> SolverState:
        log_attempt(logger, self.attempt, self.max_attempts, "CONTRADICTED", "full restart")
        return SolverState.INITIALIZING

    def _backtrack(self) -> bool:
        """
        Undo recent decisions until one can be retried with a different tile.

        The tile that led to the contradiction is removed from the cell it was
        chosen for, and propagation resumes from there. Returns False when no
        decision is left to undo or the backtrack budget is spent.
        """
        grid = self.grid
        while self._decisions and self._attempt_backtracks < self.config.max_backtracks:
            coord, tile_id = self._decisions.pop()
            grid.rollback()
            self._attempt_backtracks += 1
            self.backtracks += 1
            log_backtrack(logger, self.attempt, coord, tile_id, grid.checkpoint_depth)

            grid.restrict(coord, grid.domain_of(coord) - {tile_id})
            if grid.is_contradicted(coord):
                continue  # No alternative here, undo further
            self._pending = [coord]
            return True
        return False

    # -------------------------------------------------------------------------
    # Termination
    # -------------------------------------------------------------------------

    def _budget_spent(self) -> bool:
        if self.config.max_cycles is not None and self.cycles >= self.config.max_cycles:
            return True
        if self.config.time_limit is not None and self._started_at is not None:
            return time.monotonic() - self._started_at >= self.config.time_limit
        return False

    def _finish_succeeded(self) -> SolverState:
        return self._finish(
            SolverState.SUCCEEDED,
            SolveResult.ok(
                self.grid.result(),
                attempts=self.attempt,
                seed=self.seed,
                cycles=self.cycles,
                backtracks=self.backtracks,
            ),
        )

    def _finish_cancelled(self) -> SolverState:
        return self._finish(
            SolverState.CANCELLED,
            SolveResult.fail(
                FailureReason.CANCELLED,
                self.attempt,
                f"Cancelled during attempt {self.attempt}",
                seed=self.seed,
                cycles=self.cycles,
                backtracks=self.backtracks,
            ),
        )

    def _finish_timed_out(self) -> SolverState:
        return self._finish(
            SolverState.TIMED_OUT,
            SolveResult.fail(
                FailureReason.TIMED_OUT,
                self.attempt,
                f"Budget spent after {self.cycles} cycle(s) in {self.attempt} attempt(s)",
                seed=self.seed,
                cycles=self.cycles,
                backtracks=self.backtracks,
            ),
        )

    def _finish(self, state: SolverState, result: SolveResult) -> SolverState:
        self.result = result
        duration_ms = None
        if self._started_at is not None:
            duration_ms = int((time.monotonic() - self._started_at) * 1000)
        log_result(
            logger,
            state.name,
            result.attempts,
            result.cycles,
            duration_ms=duration_ms,
            details=f"seed={self.seed} | backtracks={self.backtracks}",
        )
        return state


def solve(
    config: SolverConfig,
    rules: RuleTable | None = None,
    cancel: CancelToken | None = None,
    progress_callback: ProgressCallback | None = None,
) -> SolveResult:
    """
    Generate one map.

    Returns a SolveResult; failures (exhausted, cancelled, timed out) are
    reported in it, not raised.

    Raises:
        ConfigError: If the configuration is invalid
    """
    return WFCSolver(config, rules).run(cancel=cancel, progress_callback=progress_callback)


async def solve_async(
    config: SolverConfig,
    rules: RuleTable | None = None,
    cancel: CancelToken | None = None,
    progress_callback: ProgressCallback | None = None,
) -> SolveResult:
    """
    Generate one map, yielding to the event loop after every cycle.

    Same semantics as solve(); lets a host interleave generation with
    rendering or other tasks. Cancelling the awaiting task abandons the solve.
    """
    solver = WFCSolver(config, rules)
    for _ in solver.iter_cycles(cancel):
        if progress_callback is not None:
            progress_callback(solver.collapsed_count, solver.total_cells)
        await asyncio.sleep(0)
    return solver.result
