from typing import Iterable, Iterator, List, NamedTuple, Optional, Set, Tuple

# ----------------------------
# Grid positions
# ----------------------------

DIRECTIONS = [(-1, 0), (1, 0), (0, -1), (0, 1)]


class Coordinate(NamedTuple):
    row: int
    col: int

    def is_nil(self) -> bool:
        return self.row == -1 and self.col == -1

    def translate(self, dr: int, dc: int) -> "Coordinate":
        return Coordinate(self.row + dr, self.col + dc)

    def neighbors4(self) -> List["Coordinate"]:
        """Orthogonal neighbours, unbounded (callers filter by grid)."""
        return [Coordinate(self.row + dr, self.col + dc) for dr, dc in DIRECTIONS]

    def __str__(self) -> str:
        return f"(r{self.row}, c{self.col})"


NIL_COORDINATE = Coordinate(-1, -1)


class CoordinateSet:
    """A mutable set of Coordinates with grid-aware predicates."""

    __slots__ = ("_cells",)

    def __init__(self, cells: Optional[Iterable[Tuple[int, int]]] = None) -> None:
        self._cells: Set[Coordinate] = set()
        if cells is not None:
            for r, c in cells:
                self._cells.add(Coordinate(r, c))

    @classmethod
    def single(cls, c: Tuple[int, int]) -> "CoordinateSet":
        return cls([c])

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self._cells)

    def __contains__(self, c: object) -> bool:
        return c in self._cells

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoordinateSet):
            return NotImplemented
        return self._cells == other._cells

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return "CoordinateSet(" + " ".join(str(c) for c in self.sorted()) + ")"

    def is_empty(self) -> bool:
        return not self._cells

    def add(self, c: Tuple[int, int]) -> None:
        self._cells.add(Coordinate(*c))

    def discard(self, c: Tuple[int, int]) -> None:
        self._cells.discard(Coordinate(*c))

    def add_all(self, other: "CoordinateSet") -> None:
        self._cells.update(other._cells)

    def remove_all(self, other: "CoordinateSet") -> None:
        self._cells.difference_update(other._cells)

    def retain_all(self, other: "CoordinateSet") -> None:
        self._cells.intersection_update(other._cells)

    def plus(self, other: "CoordinateSet") -> "CoordinateSet":
        cs = self.copy()
        cs.add_all(other)
        return cs

    def minus(self, other: "CoordinateSet") -> "CoordinateSet":
        cs = self.copy()
        cs.remove_all(other)
        return cs

    def copy(self) -> "CoordinateSet":
        cs = CoordinateSet()
        cs._cells = set(self._cells)
        return cs

    def contains_all(self, subset: "CoordinateSet") -> bool:
        return subset._cells <= self._cells

    def contains_at_least_one(self, other: Iterable[Tuple[int, int]]) -> bool:
        return any(c in self._cells for c in other)

    def one_member(self) -> Coordinate:
        if not self._cells:
            return NIL_COORDINATE
        return min(self._cells)

    def sorted(self) -> List[Coordinate]:
        return sorted(self._cells)

    def borders_coordinate(self, c: Tuple[int, int]) -> bool:
        c = Coordinate(*c)
        if c in self._cells:
            return False
        return any(n in self._cells for n in c.neighbors4())

    def borders_set(self, other: "CoordinateSet") -> bool:
        small, large = (self, other) if len(self) <= len(other) else (other, self)
        for m in small._cells:
            for n in m.neighbors4():
                if n in large._cells:
                    return True
        return False

    def borders_set_diagonally(self, other: "CoordinateSet") -> bool:
        small, large = (self, other) if len(self) <= len(other) else (other, self)
        for m in small._cells:
            for dr in (-1, 0, 1):
                for dc in (-1, 0, 1):
                    if m.translate(dr, dc) in large._cells:
                        return True
        return False

    def can_add_wall(self, c: Tuple[int, int]) -> bool:
        """
        False if adding c would complete a 2x2 block of members.

          012
          3*4
          567
        """
        c = Coordinate(*c)
        n = []
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                n.append(c.translate(dr, dc) in self._cells)
        if n[1]:
            if n[0] and n[3]:
                return False
            if n[2] and n[4]:
                return False
        if n[6]:
            if n[3] and n[5]:
                return False
            if n[4] and n[7]:
                return False
        return True

    def serialized(self) -> Tuple[Coordinate, ...]:
        """Canonical (sorted) form, used as a dedup key for sets of sets."""
        return tuple(sorted(self._cells))


class CoordinateSetSet:
    """Set of CoordinateSets, deduplicated by their serialized form."""

    def __init__(self) -> None:
        self._keys: Set[Tuple[Coordinate, ...]] = set()

    def __len__(self) -> int:
        return len(self._keys)

    def add(self, cs: CoordinateSet) -> bool:
        key = cs.serialized()
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def contains(self, cs: CoordinateSet) -> bool:
        return cs.serialized() in self._keys


def dedupe_sets(sets: Iterable[CoordinateSet]) -> List[CoordinateSet]:
    seen: Set[Tuple[Coordinate, ...]] = set()
    out = []
    for cs in sets:
        key = cs.serialized()
        if key in seen:
            continue
        seen.add(key)
        out.append(cs)
    return out
