from typing import Callable, List, Optional, Tuple

from nurikabe_checks import bridge_cells, set_forces_pool, set_splits_walls
from nurikabe_coords import CoordinateSet
from nurikabe_enumerate import populate_island_possibilities
from nurikabe_model import CLEAR, PAINTED, UNKNOWN, Board, Island, StepResult
from nurikabe_progress import ProgressChannel, ProgressUpdate
from nurikabe_stopwatch import Stopwatch

BROKEN_RULES = "BROKEN_NURIKABE_RULES"
NO_RULE = "None"

# Global registry for rules: list of (priority, func, name)
_RULES = []


def solver_rule(priority: int, name: str, message: str = "", expensive: bool = False) -> Callable:
    """Decorator to register a solver rule with a priority and a descriptive name."""
    def decorator(func: Callable) -> Callable:
        func._rule_name = name
        func._rule_message = message
        func._rule_expensive = expensive
        _RULES.append((priority, func, name))
        return func
    return decorator


def rule_by_name(name: str) -> Optional[Callable]:
    for _, func, rule_name in _RULES:
        if rule_name == name:
            return func
    return None


def _windows(board: Board) -> List[Tuple[Tuple[int, int], ...]]:
    out = []
    for r in range(board.rows - 1):
        for c in range(board.cols - 1):
            out.append(((r, c), (r, c + 1), (r + 1, c), (r + 1, c + 1)))
    return out


class NurikabeSolver:
    RULE_NAMES: List[str] = []

    def __init__(self, board: Board, progress: Optional[ProgressChannel] = None,
                 stopwatch: Optional[Stopwatch] = None, skip_expensive: bool = False) -> None:
        self.board = board
        self.progress = progress
        self.stopwatch = stopwatch
        self.skip_expensive = skip_expensive
        self.current_action = ""
        self._changed: List[Tuple[int, int]] = []

    # ----------------------------
    # Progress and change tracking
    # ----------------------------

    def _publish(self) -> None:
        if self.progress is None:
            return
        self.progress.publish(ProgressUpdate(self.current_action, self.board.total_marked, self.board.problem.size))

    def _set_action(self, action: str) -> None:
        if action == self.current_action:
            return
        self.current_action = action
        self._publish()

    def mark_clear(self, r: int, c: int) -> bool:
        if not self.board.mark_clear(r, c):
            return False
        self._changed.append((r, c))
        self._publish()
        return True

    def mark_painted(self, r: int, c: int) -> bool:
        if not self.board.mark_painted(r, c):
            return False
        self._changed.append((r, c))
        self._publish()
        return True

    def _result(self, *format_args) -> StepResult:
        return StepResult(changed_cells=list(self._changed), format_args=format_args)

    # ----------------------------
    # Driver
    # ----------------------------

    def init_solve(self) -> None:
        """Merge everything already on the board and enumerate island shapes."""
        self._set_action("Enumerating island possibilities")
        if self.stopwatch is not None:
            with self.stopwatch.timed("init_solve"):
                self.board.merge_all()
                populate_island_possibilities(self.board)
        else:
            self.board.merge_all()
            populate_island_possibilities(self.board)

    def _apply(self, func: Callable, name: str) -> Optional[StepResult]:
        self._changed = []
        self._set_action(name)
        if self.stopwatch is not None:
            with self.stopwatch.timed(name):
                res = func(self)
        else:
            res = func(self)
        if not res:
            return None
        if not res.rule:
            res.rule = name
        # If there's a rule message template and no explicit message in result
        if func._rule_message and not res.message:
            if res.format_args:
                try:
                    res.message = func._rule_message % res.format_args
                except TypeError:
                    res.message = func._rule_message
            else:
                res.message = func._rule_message
        return res

    def step(self) -> StepResult:
        # Check for contradictions at the start of the step
        err_msg = self.board.contains_error()
        if err_msg is not None:
            prev_rule = self.board.last_step.rule if self.board.last_step else NO_RULE
            res = StepResult([], f"!!! CONTRADICTION DETECTED !!! {err_msg}. (Rule: {prev_rule})", BROKEN_RULES)
            self.board.last_step = res
            return res

        # Iterate over rules sorted by priority (lowest number first)
        for _, func, name in sorted(_RULES, key=lambda x: x[0]):
            if func._rule_expensive and self.skip_expensive:
                continue
            res = self._apply(func, name)
            if res:
                self.board.last_step = res
                return res

        self.board.last_step = StepResult([], "No applicable rule found.", NO_RULE)
        return self.board.last_step

    def auto_solve(self, make_guesses: bool = False,
                   skip_expensive: Optional[bool] = None) -> Tuple[bool, Optional[str]]:
        """
        Run rules to a fixpoint, optionally guessing when they stall.

        Returns (solved, reason); reason names the contradiction or the first
        unsolved condition.
        """
        saved = self.skip_expensive
        if skip_expensive is not None:
            self.skip_expensive = skip_expensive
        try:
            if not self.board.possibilities_ready:
                self.init_solve()
            while True:
                res = self.step()
                if res.rule == BROKEN_RULES:
                    return False, self.board.contains_error()
                if self.board.is_fully_marked():
                    break
                if res.rule != NO_RULE:
                    continue
                if make_guesses and self._guess_round():
                    continue
                break
        finally:
            self.skip_expensive = saved
        err_msg = self.board.contains_error()
        if err_msg is not None:
            return False, err_msg
        return self.board.is_solved()

    def _guess_round(self) -> bool:
        if self.make_a_guess(True, True) or self.make_a_guess(False, True):
            return True
        if self.skip_expensive:
            return False
        return self.make_a_guess(True, False) or self.make_a_guess(False, False)

    # ----------------------------
    # Guessing
    # ----------------------------

    def falsify_guess(self, r: int, c: int, status: int, skip_expensive: bool = True) -> Optional[str]:
        """Play status at (r, c) on a copy and report the contradiction it leads to, if any."""
        clone = self.board.clone()
        if clone.mark(r, c, status):
            NurikabeSolver(clone, skip_expensive=skip_expensive).auto_solve(False, skip_expensive)
        err_msg = clone.contains_error()
        if err_msg is None and clone.is_fully_marked():
            solved, reason = clone.is_solved()
            if not solved:
                return reason
        return err_msg

    def make_a_guess(self, neighbors_only: bool, skip_expensive: bool) -> bool:
        board = self.board
        self._set_action("Guessing" + (" near clear cells" if neighbors_only else ""))
        for r in range(board.rows):
            for c in range(board.cols):
                if board.grid[r][c] != UNKNOWN:
                    continue
                if neighbors_only and not any(board.grid[n.row][n.col] == CLEAR for n in board.neighbors4(r, c)):
                    continue
                err_msg = self.falsify_guess(r, c, CLEAR, skip_expensive)
                if err_msg is not None:
                    self._changed = []
                    self.mark_painted(r, c)
                    board.last_step = StepResult(list(self._changed), f"Guessing ({r},{c}) clear fails: {err_msg}", "Guess")
                    return True
                err_msg = self.falsify_guess(r, c, PAINTED, skip_expensive)
                if err_msg is not None:
                    self._changed = []
                    self.mark_clear(r, c)
                    board.last_step = StepResult(list(self._changed), f"Guessing ({r},{c}) painted fails: {err_msg}", "Guess")
                    return True
        return False

    # ----------------------------
    # Rules
    # ----------------------------

    @solver_rule(priority=1, name="Two-bordered cell -> painted",
                 message="Painted (%d,%d): it borders two numbered islands.")
    def paint_two_bordered_cells(self) -> Optional[StepResult]:
        """
        An unknown cell touching two different numbered islands would join them.
        Logic: paint it.
        """
        lookup = self.board.island_map()
        for r in range(self.board.rows):
            for c in range(self.board.cols):
                if self.board.grid[r][c] != UNKNOWN:
                    continue
                roots = set()
                for n in self.board.neighbors4(r, c):
                    island = lookup.get(n)
                    if island is not None and island.is_rooted():
                        roots.add(island.root)
                if len(roots) >= 2 and self.mark_painted(r, c):
                    return self._result(r, c)
        return None

    @solver_rule(priority=2, name="Single liberty -> island grows",
                 message="Grew %d island cell(s) through their only liberty.")
    def extend_islands_one_liberty(self) -> Optional[StepResult]:
        """
        An incomplete island with a single unknown neighbour can only grow there.
        Logic: clear that neighbour, repeat until no island has one liberty left.
        """
        grew = True
        while grew:
            grew = False
            for island in list(self.board.islands):
                if island.is_rooted() and island.current_size >= island.target_size:
                    continue
                libs = self.board.liberties(island)
                if len(libs) == 1:
                    cell = libs.one_member()
                    grew = self.mark_clear(cell.row, cell.col)
                    break
        if self._changed:
            return self._result(len(self._changed))
        return None

    @solver_rule(priority=3, name="Complete island -> painted border",
                 message="Sealed the complete island at %s.")
    def add_island_borders(self) -> Optional[StepResult]:
        """
        A complete island cannot take another cell.
        Logic: paint every liberty, then the island no longer needs sealing.
        """
        for island in list(self.board.islands):
            if not island.ready_for_borders:
                continue
            libs = self.board.liberties(island)
            for cell in libs.sorted():
                self.mark_painted(cell.row, cell.col)
            island.ready_for_borders = False
            if self._changed:
                return self._result(str(island.root))
        return None

    @solver_rule(priority=4, name="Unreachable cell -> painted",
                 message="Painted %d cell(s) no island can reach.")
    def paint_unreachables(self) -> Optional[StepResult]:
        """Once every island is enumerated, a cell no remaining shape covers must be wall."""
        if not self.board.possibilities_ready:
            return None
        reachable = CoordinateSet()
        for island in self.board.islands:
            if island.is_rooted():
                reachable.add_all(island.reachable)
        for cell in self.board.cells_with(UNKNOWN):
            if cell not in reachable:
                self.mark_painted(cell.row, cell.col)
        if self._changed:
            return self._result(len(self._changed))
        return None

    @solver_rule(priority=5, name="Strip possibilities",
                 message="Removed island shapes that no longer fit the board.")
    def strip_possibilities(self) -> Optional[StepResult]:
        """Drop shapes that contain painted cells, miss clear members or touch a foreign clear cell."""
        if self.board.strip_all_possibilities():
            return self._result()
        return None

    @solver_rule(priority=6, name="Wall single liberty -> wall grows",
                 message="Extended the wall through its only liberty (%d,%d).")
    def extend_wall_islands_one_liberty(self) -> Optional[StepResult]:
        """A wall region with one unknown neighbour must leave through it while other walls are still apart or more wall is needed."""
        board = self.board
        if len(board.wall_islands) < 2 and board.total_painted >= board.problem.target_wall_count:
            return None
        for island in list(board.wall_islands):
            libs = board.liberties(island)
            if len(libs) == 1:
                cell = libs.one_member()
                if self.mark_painted(cell.row, cell.col):
                    return self._result(cell.row, cell.col)
        return None

    @solver_rule(priority=7, name="Unrooted island -> single owner",
                 message="Only the island at %s can absorb the clear cells at %s.")
    def connect_unrooted_islands(self) -> Optional[StepResult]:
        """
        A clear region with no clue that only one numbered island can reach belongs to it.
        Logic: keep only that island's shapes containing the region.
        """
        board = self.board
        if not board.possibilities_ready:
            return None
        rooted = [i for i in board.islands if i.is_rooted()]
        for island in board.islands:
            if island.is_rooted():
                continue
            owners = [o for o in rooted if any(p.contains_all(island.members) for p in o.possibilities)]
            if len(owners) != 1:
                continue
            owner = owners[0]
            kept = [p for p in owner.possibilities if p.contains_all(island.members)]
            if len(kept) < len(owner.possibilities):
                owner.possibilities = kept
                owner.refresh_reachable()
                board.populate_unrooted_possibilities()
                return self._result(str(owner.root), str(island.members.one_member()))
        return None

    @solver_rule(priority=8, name="Single pool preventer",
                 message="Only the island at %s can break up the 2x2 block at (%d,%d).")
    def find_single_pool_preventers(self) -> Optional[StepResult]:
        """
        A 2x2 block with no clear cell needs a clear cell from some island.
        Logic: if one island alone reaches its unknown cells, keep only its shapes that cover the block.
        """
        board = self.board
        if not board.possibilities_ready:
            return None
        incomplete = [i for i in board.islands if i.is_rooted() and not i.is_complete()]
        for window in _windows(board):
            statuses = [board.grid[r][c] for r, c in window]
            if CLEAR in statuses or UNKNOWN not in statuses:
                continue
            unknown = [cell for cell, status in zip(window, statuses) if status == UNKNOWN]
            preventers = [i for i in incomplete if i.reachable.contains_at_least_one(unknown)]
            if len(preventers) != 1:
                continue
            island = preventers[0]
            kept = [p for p in island.possibilities if p.contains_at_least_one(window)]
            if len(kept) < len(island.possibilities):
                island.possibilities = kept
                island.refresh_reachable()
                board.populate_unrooted_possibilities()
                return self._result(str(island.root), window[0][0], window[0][1])
        return None

    @solver_rule(priority=9, name="Island necessaries",
                 message="Every remaining shape of the island at %s agrees on %d cell(s).")
    def fill_island_necessaries(self) -> Optional[StepResult]:
        """Cells in every shape of an island are clear; cells bordering every shape are painted."""
        board = self.board
        if not board.possibilities_ready:
            return None
        for island in list(board.islands):
            if island.is_complete() or not island.possibilities:
                continue
            common = island.possibilities[0].copy()
            rim = board.neighbors(island.possibilities[0])
            for p in island.possibilities[1:]:
                common.retain_all(p)
                rim.retain_all(board.neighbors(p))
            to_clear = [c for c in common.sorted() if board.grid[c.row][c.col] == UNKNOWN]
            to_paint = [c for c in rim.sorted() if board.grid[c.row][c.col] == UNKNOWN]
            if not to_clear and not to_paint:
                continue
            for cell in to_clear:
                self.mark_clear(cell.row, cell.col)
            for cell in to_paint:
                self.mark_painted(cell.row, cell.col)
            if self._changed:
                where = island.root if island.is_rooted() else island.members.one_member()
                return self._result(str(where), len(self._changed))
        return None

    @solver_rule(priority=10, name="Elbow -> clear",
                 message="Cleared (%d,%d) to keep the 2x2 block from becoming a pool.")
    def fill_elbows(self) -> Optional[StepResult]:
        """Three painted cells in a 2x2 block force the fourth clear."""
        board = self.board
        for window in _windows(board):
            statuses = [board.grid[r][c] for r, c in window]
            if statuses.count(PAINTED) == 3 and statuses.count(UNKNOWN) == 1:
                r, c = window[statuses.index(UNKNOWN)]
                if self.mark_clear(r, c):
                    return self._result(r, c)
        return None

    @solver_rule(priority=11, name="Wall bridge -> painted",
                 message="Painted (%d,%d): the walls cannot stay connected without it.")
    def extend_wall_islands(self) -> Optional[StepResult]:
        """An unknown cell whose loss cuts a wall region off from the rest must be painted."""
        for cell in bridge_cells(self.board):
            if self.mark_painted(cell.row, cell.col):
                return self._result(cell.row, cell.col)
        return None

    @solver_rule(priority=12, name="Eliminate intolerables",
                 message="Dropped %d shape(s) that leave another island no room.", expensive=True)
    def eliminate_intolerables(self) -> Optional[StepResult]:
        """A shape is impossible if some other island has no shape left that avoids it and does not touch it."""
        board = self.board
        if not board.possibilities_ready:
            return None
        incomplete = [i for i in board.islands if i.is_rooted() and not i.is_complete()]
        for island in incomplete:
            others = [o for o in incomplete if o is not island]
            kept = [p for p in island.possibilities if all(self._tolerates(o, p) for o in others)]
            dropped = len(island.possibilities) - len(kept)
            if dropped:
                island.possibilities = kept
                island.refresh_reachable()
                board.populate_unrooted_possibilities()
                return self._result(dropped)
        return None

    @staticmethod
    def _tolerates(other: Island, p: CoordinateSet) -> bool:
        for q in other.possibilities:
            if not q.contains_at_least_one(p) and not q.borders_set(p):
                return True
        return False

    @solver_rule(priority=13, name="Eliminate wall splitters",
                 message="Dropped %d shape(s) that would split the walls or make a pool.", expensive=True)
    def eliminate_wall_splitters(self) -> Optional[StepResult]:
        """Drop shapes that, once clear, would cut the walls apart or force a 2x2 pool."""
        board = self.board
        if not board.possibilities_ready:
            return None
        for island in board.islands:
            if not island.is_rooted() or island.is_complete():
                continue
            kept = [p for p in island.possibilities
                    if not set_splits_walls(board, p) and not set_forces_pool(board, p)]
            dropped = len(island.possibilities) - len(kept)
            if dropped:
                island.possibilities = kept
                island.refresh_reachable()
                board.populate_unrooted_possibilities()
                return self._result(dropped)
        return None


NurikabeSolver.RULE_NAMES = [r[2] for r in sorted(_RULES, key=lambda x: x[0])]
