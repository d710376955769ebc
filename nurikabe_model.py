from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from nurikabe_coords import (
    NIL_COORDINATE,
    Coordinate,
    CoordinateSet,
    dedupe_sets,
)

# ----------------------------
# Domain model
# ----------------------------

UNKNOWN = 0
PAINTED = 1
CLEAR = 2

CLEAR_ISLAND = 0
WALL_ISLAND = 1

RuleName = str


def island_spec_char(size: int) -> str:
    if size < 10:
        return chr(size + ord("0"))
    if size < 36:
        return chr(size - 10 + ord("a"))
    if size < 59:
        return chr(size - 36 + ord("A"))
    return "?"


def parse_island_spec_char(ch: str) -> int:
    """Clue value for ch, 0 for '0', -1 if ch is not a clue character."""
    if "0" <= ch <= "9":
        return ord(ch) - ord("0")
    if "a" <= ch <= "z":
        return ord(ch) - ord("a") + 10
    if "A" <= ch <= "W":
        return ord(ch) - ord("A") + 36
    return -1


@dataclass(frozen=True)
class IslandSpec:
    row: int
    col: int
    size: int


@dataclass
class PuzzleDef:
    width: int
    height: int
    island_specs: List[IslandSpec] = field(default_factory=list)

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def clue_total(self) -> int:
        return sum(spec.size for spec in self.island_specs)

    @property
    def target_wall_count(self) -> int:
        return self.size - self.clue_total

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid grid dimensions {self.width}x{self.height}.")
        seen = set()
        for spec in self.island_specs:
            if not (0 <= spec.row < self.height and 0 <= spec.col < self.width):
                raise ValueError(f"Clue at ({spec.row},{spec.col}) is outside the grid.")
            if spec.size < 1:
                raise ValueError(f"Clue at ({spec.row},{spec.col}) has size {spec.size}; clues must be at least 1.")
            if (spec.row, spec.col) in seen:
                raise ValueError(f"Duplicate clue at ({spec.row},{spec.col}).")
            seen.add((spec.row, spec.col))
        if self.clue_total > self.size:
            raise ValueError("Clues require more cells than the grid holds.")

    def to_text(self) -> str:
        rows = [["_"] * self.width for _ in range(self.height)]
        for spec in self.island_specs:
            rows[spec.row][spec.col] = island_spec_char(spec.size)
        return "\n".join("".join(row) for row in rows)


def _read_rows(text: str) -> Tuple[Optional[List[str]], str]:
    lines = [ln.strip() for ln in text.splitlines() if ln.strip() != ""]
    if not lines:
        return None, "Empty input."
    cols = len(lines[0])
    if any(len(ln) != cols for ln in lines):
        return None, "Ragged rows: all rows must have the same number of columns."
    for ln in lines:
        for ch in ln:
            if ch in "_X.":
                continue
            value = parse_island_spec_char(ch)
            if value == 0:
                return None, "Zero-size clue not allowed."
            if value < 0:
                return None, f"Bad character: {ch}"
    return lines, "Loaded."


def parse_puzzle_text(text: str) -> Tuple[Optional[PuzzleDef], str]:
    """Build a PuzzleDef from one line per row.

    '1'-'9', 'a'-'z' (10-35) and 'A'-'W' (36-58) are clues; '_', 'X' and '.'
    are cells without a clue.
    """
    lines, msg = _read_rows(text)
    if lines is None:
        return None, msg
    specs = []
    for r, ln in enumerate(lines):
        for c, ch in enumerate(ln):
            if ch in "_X.":
                continue
            specs.append(IslandSpec(row=r, col=c, size=parse_island_spec_char(ch)))
    return PuzzleDef(width=len(lines[0]), height=len(lines), island_specs=specs), msg


def board_from_text(text: str) -> "Board":
    """Parse text into a Board, pre-marking 'X' cells PAINTED and '.' cells CLEAR."""
    problem, msg = parse_puzzle_text(text)
    if problem is None:
        raise ValueError(msg)
    board = Board(problem)
    lines, _ = _read_rows(text)
    for r, ln in enumerate(lines):
        for c, ch in enumerate(ln):
            if ch == "X":
                board.mark_painted(r, c)
            elif ch == ".":
                board.mark_clear(r, c)
    return board


@dataclass
class StepResult:
    changed_cells: List[Tuple[int, int]]
    message: str = ""
    rule: RuleName = ""
    format_args: Tuple = ()


class Island:
    """A connected region of same-status cells.

    Clear islands carry a target size (0 while unrooted) and the list of
    candidate final shapes; wall islands only track their members.
    """

    def __init__(self, members: CoordinateSet, target_size: int, island_type: int,
                 root: Coordinate = NIL_COORDINATE, ready_for_borders: bool = False) -> None:
        self.members = members
        self.target_size = target_size
        self.island_type = island_type
        self.root = root
        self.ready_for_borders = ready_for_borders
        self.possibilities: List[CoordinateSet] = []
        self.reachable = CoordinateSet()

    @classmethod
    def rooted(cls, r: int, c: int, size: int) -> "Island":
        return cls(CoordinateSet.single((r, c)), size, CLEAR_ISLAND, Coordinate(r, c), size == 1)

    @classmethod
    def unrooted(cls, r: int, c: int) -> "Island":
        return cls(CoordinateSet.single((r, c)), 0, CLEAR_ISLAND)

    @classmethod
    def wall(cls, r: int, c: int) -> "Island":
        return cls(CoordinateSet.single((r, c)), 0, WALL_ISLAND)

    @property
    def current_size(self) -> int:
        return len(self.members)

    def is_rooted(self) -> bool:
        return not self.root.is_nil()

    def is_wall(self) -> bool:
        return self.island_type == WALL_ISLAND

    def is_complete(self) -> bool:
        return self.target_size == self.current_size

    def contains(self, c: Tuple[int, int]) -> bool:
        return c in self.members

    def borders_cell(self, c: Tuple[int, int]) -> bool:
        return self.members.borders_coordinate(c)

    def borders_island(self, other: "Island") -> bool:
        return self.members.borders_set(other.members)

    def absorb(self, other: "Island") -> None:
        # Two rooted islands meeting is a contradiction; contains_error reports it.
        if self.island_type == CLEAR_ISLAND and self.target_size == 0:
            self.target_size = other.target_size
            self.root = other.root
            self.possibilities = dedupe_sets(self.possibilities + other.possibilities)
        self.members = self.members.plus(other.members)
        if not self.is_wall():
            self.refresh_reachable()

    def refresh_reachable(self) -> None:
        reachable = self.members.copy()
        for p in self.possibilities:
            reachable.add_all(p)
        self.reachable = reachable

    def clone(self) -> "Island":
        new = Island(self.members.copy(), self.target_size, self.island_type, self.root, self.ready_for_borders)
        new.possibilities = [p.copy() for p in self.possibilities]
        new.reachable = self.reachable.copy()
        return new

    def __repr__(self) -> str:
        members = " ".join(str(m) for m in self.members.sorted())
        if self.is_wall():
            return f"{members} {self.current_size}"
        if self.is_complete():
            return f"{members} {self.current_size}/{self.target_size}"
        return f"{members} {self.current_size}/{self.target_size} poss {len(self.possibilities)}"


def new_grid(width: int, height: int) -> List[List[int]]:
    return [[UNKNOWN for _ in range(width)] for _ in range(height)]


class Board:
    def __init__(self, problem: PuzzleDef) -> None:
        problem.validate()
        self.problem = problem
        self.rows = problem.height
        self.cols = problem.width
        self.grid: List[List[int]] = new_grid(problem.width, problem.height)
        self.scratch_grid: List[List[int]] = new_grid(problem.width, problem.height)
        self.islands: List[Island] = []
        self.wall_islands: List[Island] = []
        self.diagonal_sets: List[CoordinateSet] = []
        self.total_marked = 0
        self.total_painted = 0

        # Set once every rooted island has been enumerated; before that an
        # empty possibility list means "not computed yet".
        self.possibilities_ready = False
        self.contradiction: Optional[str] = None

        # UI/log support
        self.last_step: Optional[StepResult] = None

        self.clue_at: Dict[Coordinate, int] = {}
        for spec in problem.island_specs:
            self.grid[spec.row][spec.col] = CLEAR
            self.total_marked += 1
            self.clue_at[Coordinate(spec.row, spec.col)] = spec.size
            self.islands.append(Island.rooted(spec.row, spec.col, spec.size))
            self.diagonal_sets.append(CoordinateSet.single((spec.row, spec.col)))
        # adjacent clues collapse into one island, which contains_error rejects
        self.merge_islands()
        self.merge_diagonal_sets()

    def clone(self) -> "Board":
        new = Board.__new__(Board)
        new.problem = self.problem
        new.rows = self.rows
        new.cols = self.cols
        new.grid = [row[:] for row in self.grid]
        new.scratch_grid = new_grid(self.cols, self.rows)
        new.islands = [i.clone() for i in self.islands]
        new.wall_islands = [i.clone() for i in self.wall_islands]
        new.diagonal_sets = [cs.copy() for cs in self.diagonal_sets]
        new.total_marked = self.total_marked
        new.total_painted = self.total_painted
        new.possibilities_ready = self.possibilities_ready
        new.contradiction = self.contradiction
        new.last_step = None
        new.clue_at = dict(self.clue_at)
        return new

    # ----------------------------
    # Geometry helpers
    # ----------------------------

    def in_bounds(self, r: int, c: int) -> bool:
        return 0 <= r < self.rows and 0 <= c < self.cols

    def get(self, c: Tuple[int, int]) -> int:
        return self.grid[c[0]][c[1]]

    def is_clue(self, r: int, c: int) -> bool:
        return (r, c) in self.clue_at

    def is_fully_marked(self) -> bool:
        return self.total_marked == self.problem.size

    def neighbors4(self, r: int, c: int) -> List[Coordinate]:
        out = []
        for n in Coordinate(r, c).neighbors4():
            if self.in_bounds(n.row, n.col):
                out.append(n)
        return out

    def neighbors(self, cs: CoordinateSet) -> CoordinateSet:
        """In-bounds orthogonal neighbours of cs that are not members of cs."""
        out = CoordinateSet()
        for m in cs:
            for n in m.neighbors4():
                if self.in_bounds(n.row, n.col) and n not in cs:
                    out.add(n)
        return out

    def neighbors_with(self, cs: CoordinateSet, status: int) -> CoordinateSet:
        out = CoordinateSet()
        for m in cs:
            for n in m.neighbors4():
                if self.in_bounds(n.row, n.col) and n not in cs and self.grid[n.row][n.col] == status:
                    out.add(n)
        return out

    def has_neighbor_with(self, cs: CoordinateSet, status: int) -> bool:
        for m in cs:
            for n in m.neighbors4():
                if self.in_bounds(n.row, n.col) and n not in cs and self.grid[n.row][n.col] == status:
                    return True
        return False

    def liberties(self, island: Island) -> CoordinateSet:
        return self.neighbors_with(island.members, UNKNOWN)

    def count_numbered_islands(self, cs: CoordinateSet) -> int:
        return sum(1 for m in cs if m in self.clue_at)

    def cells_with(self, status: int) -> List[Coordinate]:
        return [Coordinate(r, c) for r in range(self.rows) for c in range(self.cols)
                if self.grid[r][c] == status]

    def clear_scratch_grid(self) -> None:
        for row in self.scratch_grid:
            for c in range(len(row)):
                row[c] = UNKNOWN

    # ----------------------------
    # Islands
    # ----------------------------

    def island_at(self, r: int, c: int) -> Optional[Island]:
        for island in self.islands:
            if (r, c) in island.members:
                return island
        return None

    def island_map(self) -> Dict[Coordinate, Island]:
        lookup = {}
        for island in self.islands:
            for m in island.members:
                lookup[m] = island
        return lookup

    def merge_all(self) -> None:
        self.merge_islands()
        self.merge_diagonal_sets()
        self.merge_wall_islands()

    @staticmethod
    def _merge_adjacent(islands: List[Island]) -> None:
        changed = True
        while changed:
            changed = False
            i = 0
            while i < len(islands):
                j = i + 1
                while j < len(islands):
                    if islands[i].borders_island(islands[j]):
                        islands[i].absorb(islands.pop(j))
                        changed = True
                    else:
                        j += 1
                i += 1

    def merge_islands(self) -> None:
        self._merge_adjacent(self.islands)
        self.strip_all_possibilities()

    def merge_wall_islands(self) -> None:
        self._merge_adjacent(self.wall_islands)

    def merge_diagonal_sets(self) -> None:
        sets = self.diagonal_sets
        changed = True
        while changed:
            changed = False
            i = 0
            while i < len(sets):
                j = i + 1
                while j < len(sets):
                    if sets[i].borders_set_diagonally(sets[j]):
                        sets[i].add_all(sets.pop(j))
                        changed = True
                    else:
                        j += 1
                i += 1

    # ----------------------------
    # Mutation primitives
    # ----------------------------

    def _refuse_flip(self, r: int, c: int, status: int) -> None:
        if self.contradiction is None:
            wanted = "clear" if status == CLEAR else "painted"
            self.contradiction = f"cell {Coordinate(r, c)} is already decided and cannot become {wanted}"

    def mark_clear(self, r: int, c: int) -> bool:
        if not self.in_bounds(r, c):
            return False
        current = self.grid[r][c]
        if current == CLEAR:
            return False
        if current == PAINTED:
            self._refuse_flip(r, c, CLEAR)
            return False
        self.grid[r][c] = CLEAR
        self.total_marked += 1
        self.islands.append(Island.unrooted(r, c))
        self.diagonal_sets.append(CoordinateSet.single((r, c)))
        self.merge_islands()
        self.merge_diagonal_sets()

        island = self.island_at(r, c)
        if island.target_size > 0 and island.current_size == island.target_size:
            island.ready_for_borders = True
        if island.is_rooted():
            # the cell now belongs to this island; no other shape may use it
            coord = Coordinate(r, c)
            for other in self.islands:
                if other is island or not other.is_rooted():
                    continue
                kept = [p for p in other.possibilities if coord not in p]
                if len(kept) != len(other.possibilities):
                    other.possibilities = kept
                    other.refresh_reachable()
            self.populate_unrooted_possibilities()
        return True

    def mark_painted(self, r: int, c: int) -> bool:
        if not self.in_bounds(r, c):
            return False
        current = self.grid[r][c]
        if current == PAINTED:
            return False
        if current == CLEAR:
            self._refuse_flip(r, c, PAINTED)
            return False
        self.grid[r][c] = PAINTED
        self.total_marked += 1
        self.total_painted += 1
        self.wall_islands.append(Island.wall(r, c))
        self.merge_wall_islands()
        self.remove_from_possibilities(Coordinate(r, c))
        return True

    def mark(self, r: int, c: int, status: int) -> bool:
        if status == PAINTED:
            return self.mark_painted(r, c)
        if status == CLEAR:
            return self.mark_clear(r, c)
        return False

    # ----------------------------
    # Possibility bookkeeping
    # ----------------------------

    def populate_unrooted_possibilities(self) -> None:
        if not self.possibilities_ready:
            return
        rooted = [i for i in self.islands if i.is_rooted()]
        for island in self.islands:
            if island.is_rooted():
                continue
            island.possibilities = [p for r in rooted for p in r.possibilities
                                    if p.contains_all(island.members)]
            island.refresh_reachable()

    def possibility_is_consistent(self, p: CoordinateSet, lookup: Dict[Coordinate, Island]) -> bool:
        for m in p:
            status = self.grid[m.row][m.col]
            if status == PAINTED:
                return False
            if status == CLEAR:
                owner = lookup.get(m)
                if owner is not None and owner.is_rooted() and owner.root not in p:
                    return False
        # a final shape cannot touch a clear cell it does not contain
        return not self.has_neighbor_with(p, CLEAR)

    def strip_possibilities(self, island: Island, lookup: Optional[Dict[Coordinate, Island]] = None) -> bool:
        if not island.possibilities:
            return False
        if lookup is None:
            lookup = self.island_map()
        kept = [p for p in island.possibilities
                if p.contains_all(island.members) and self.possibility_is_consistent(p, lookup)]
        if len(kept) == len(island.possibilities):
            return False
        island.possibilities = kept
        island.refresh_reachable()
        return True

    def strip_all_possibilities(self) -> bool:
        lookup = self.island_map()
        changed = False
        for island in self.islands:
            if island.is_rooted():
                changed = self.strip_possibilities(island, lookup) or changed
        before = {id(i): len(i.possibilities) for i in self.islands if not i.is_rooted()}
        self.populate_unrooted_possibilities()
        for island in self.islands:
            if not island.is_rooted() and len(island.possibilities) < before[id(island)]:
                changed = True
        return changed

    def remove_from_possibilities(self, c: Coordinate) -> None:
        for island in self.islands:
            kept = [p for p in island.possibilities if c not in p]
            if len(kept) != len(island.possibilities):
                island.possibilities = kept
                island.refresh_reachable()

    # ----------------------------
    # Consistency
    # ----------------------------

    def is_pool(self, r_tl: int, c_tl: int) -> bool:
        if not self.in_bounds(r_tl + 1, c_tl + 1) or not self.in_bounds(r_tl, c_tl):
            return False
        return (self.grid[r_tl][c_tl] == PAINTED and self.grid[r_tl + 1][c_tl] == PAINTED
                and self.grid[r_tl][c_tl + 1] == PAINTED and self.grid[r_tl + 1][c_tl + 1] == PAINTED)

    def find_pool(self) -> Optional[Coordinate]:
        for r in range(self.rows - 1):
            for c in range(self.cols - 1):
                if self.is_pool(r, c):
                    return Coordinate(r, c)
        return None

    def _stranded_wall_island(self) -> Optional[Island]:
        """First wall island that no path of non-clear cells links to the first one."""
        if len(self.wall_islands) < 2:
            return None
        start = self.wall_islands[0]
        seen = set(start.members)
        queue = deque(start.members)
        while queue:
            cur = queue.popleft()
            for n in self.neighbors4(cur.row, cur.col):
                if n in seen or self.grid[n.row][n.col] == CLEAR:
                    continue
                seen.add(n)
                queue.append(n)
        for island in self.wall_islands[1:]:
            if island.members.one_member() not in seen:
                return island
        return None

    def contains_error(self) -> Optional[str]:
        """Reason the board can no longer be completed, or None."""
        if self.contradiction is not None:
            return self.contradiction
        pool = self.find_pool()
        if pool is not None:
            return f"two-by-two pool at {pool}"
        for island in self.islands:
            clues = self.count_numbered_islands(island.members)
            if clues > 1:
                return f"island at {island.members.one_member()} joins {clues} numbered cells"
            if island.is_rooted() and island.current_size > island.target_size:
                return (f"island at {island.root} has size {island.current_size} "
                        f"(should be {island.target_size})")
        if self.total_painted > self.problem.target_wall_count:
            return f"too many painted cells ({self.total_painted} > {self.problem.target_wall_count})"
        stranded = self._stranded_wall_island()
        if stranded is not None:
            return f"wall at {stranded.members.one_member()} cannot join the other walls"
        if self.possibilities_ready:
            for island in self.islands:
                if island.is_complete():
                    continue
                if not island.possibilities:
                    return f"island at {island.members.one_member()} has no possible shape"
        return None

    def is_solved(self) -> Tuple[bool, Optional[str]]:
        for r in range(self.rows):
            for c in range(self.cols):
                if self.grid[r][c] == UNKNOWN:
                    return False, f"cell {Coordinate(r, c)} is unknown"
                if self.is_pool(r, c):
                    return False, f"two-by-two pool at {Coordinate(r, c)}"
        if len(self.wall_islands) > 1:
            return False, "walls are not all joined"
        if not self.wall_islands and self.problem.target_wall_count > 0:
            return False, "no walls painted"
        for island in self.islands:
            if island.current_size != island.target_size:
                return False, (f"island at {island.members.one_member()} has size "
                               f"{island.current_size} (should be {island.target_size})")
        return True, None

    # ----------------------------
    # Output
    # ----------------------------

    def char_at(self, r: int, c: int) -> str:
        status = self.grid[r][c]
        if status == UNKNOWN:
            return "_"
        if status == PAINTED:
            return "X"
        clue = self.clue_at.get(Coordinate(r, c))
        if clue is not None:
            return island_spec_char(clue)
        return "."

    def render_rows(self) -> List[str]:
        return ["".join(self.char_at(r, c) for c in range(self.cols)) for r in range(self.rows)]

    def render(self) -> str:
        return "\n".join(self.render_rows())

    def __str__(self) -> str:
        return self.render()

    def string_debug(self) -> str:
        lines = [self.render(), f"Total marked: {self.total_marked}/{self.problem.size}"]
        incomplete = [i for i in self.islands if not i.is_complete()]
        if incomplete:
            lines.append("Islands:")
            lines.extend(repr(i) for i in incomplete)
        solved, reason = self.is_solved()
        lines.append(f"Solved: {solved}" + (f" (reason: {reason})" if reason else ""))
        return "\n".join(lines)

    def snapshot(self) -> Dict[str, object]:
        """Return a self-contained, pickle-friendly description of the current state."""
        last_step = None
        if self.last_step is not None:
            last_step = {
                "changed_cells": list(self.last_step.changed_cells),
                "message": self.last_step.message,
                "rule": self.last_step.rule,
            }
        solved, reason = self.is_solved()
        return {
            "rows": self.render_rows(),
            "total_marked": self.total_marked,
            "size": self.problem.size,
            "solved": solved,
            "reason": reason,
            "last_step": last_step,
        }
