from collections import deque
from typing import List, Optional

from nurikabe_coords import Coordinate, CoordinateSet
from nurikabe_model import CLEAR, PAINTED, UNKNOWN, Board


def _border_ring(board: Board) -> List[Coordinate]:
    """Outer cells clockwise from (0, 0). Empty for single-row/column grids."""
    rows, cols = board.rows, board.cols
    if rows < 2 or cols < 2:
        return []
    ring = [Coordinate(0, c) for c in range(cols)]
    ring += [Coordinate(r, cols - 1) for r in range(1, rows)]
    ring += [Coordinate(rows - 1, c) for c in range(cols - 2, -1, -1)]
    ring += [Coordinate(r, 0) for r in range(rows - 2, 0, -1)]
    return ring


def _border_arcs_split(board: Board, merged: CoordinateSet, must_paint: CoordinateSet) -> bool:
    ring = _border_ring(board)
    flags = [c in merged for c in ring]
    if not any(flags) or all(flags):
        return False
    # start right after a merged cell so no arc wraps around the list end
    start = flags.index(True)
    arcs_with_walls = 0
    in_arc = False
    arc_has_wall = False
    for i in range(1, len(ring) + 1):
        idx = (start + i) % len(ring)
        if flags[idx]:
            if in_arc and arc_has_wall:
                arcs_with_walls += 1
            in_arc = False
            arc_has_wall = False
            continue
        in_arc = True
        if ring[idx] in must_paint:
            arc_has_wall = True
    return arcs_with_walls >= 2


def _components_split(board: Board, merged: CoordinateSet, must_paint: CoordinateSet) -> bool:
    board.clear_scratch_grid()
    labels = board.scratch_grid
    label = 0
    for cell in must_paint.sorted():
        if labels[cell.row][cell.col]:
            continue
        label += 1
        if label > 1:
            return True
        labels[cell.row][cell.col] = label
        queue = deque([cell])
        while queue:
            cur = queue.popleft()
            for n in board.neighbors4(cur.row, cur.col):
                if labels[n.row][n.col] or n in merged or board.grid[n.row][n.col] == CLEAR:
                    continue
                labels[n.row][n.col] = label
                queue.append(n)
    return False


def set_splits_walls(board: Board, candidate: CoordinateSet) -> bool:
    """True if clearing candidate (and painting around it) would cut the walls in two."""
    merged = candidate.copy()
    for ds in board.diagonal_sets:
        if ds.borders_set_diagonally(candidate):
            merged.add_all(ds)

    must_paint = CoordinateSet(board.cells_with(PAINTED))
    for n in board.neighbors(candidate):
        if board.grid[n.row][n.col] != CLEAR:
            must_paint.add(n)
    must_paint.remove_all(merged)
    if len(must_paint) < 2:
        return False

    if _border_arcs_split(board, merged, must_paint):
        return True
    return _components_split(board, merged, must_paint)


def set_forces_pool(board: Board, candidate: CoordinateSet) -> bool:
    walls = CoordinateSet(board.cells_with(PAINTED))
    rim = CoordinateSet()
    for n in board.neighbors(candidate):
        if board.grid[n.row][n.col] != CLEAR:
            rim.add(n)
    walls.add_all(rim)
    return any(not walls.can_add_wall(n) for n in rim)


def walls_reachable_from(board: Board, start: Coordinate,
                         blocked: Optional[Coordinate] = None) -> CoordinateSet:
    """Cells reachable from start through non-clear cells, never entering blocked."""
    seen = CoordinateSet.single(start)
    queue = deque([Coordinate(*start)])
    while queue:
        cur = queue.popleft()
        for n in board.neighbors4(cur.row, cur.col):
            if n in seen or n == blocked:
                continue
            if board.grid[n.row][n.col] == CLEAR:
                continue
            seen.add(n)
            queue.append(n)
    return seen


def bridge_cells(board: Board) -> List[Coordinate]:
    """UNKNOWN cells whose loss would disconnect two painted cells.

    Only meaningful with two or more wall islands; every painted cell must
    already be reachable from the first one.
    """
    if len(board.wall_islands) < 2:
        return []
    start = board.wall_islands[0].members.one_member()
    reach = walls_reachable_from(board, start)
    painted = [c for c in reach if board.grid[c.row][c.col] == PAINTED]
    out = []
    for cell in reach.sorted():
        if board.grid[cell.row][cell.col] != UNKNOWN:
            continue
        without = walls_reachable_from(board, start, blocked=cell)
        if any(p not in without for p in painted):
            out.append(cell)
    return out
