from typing import Iterator

from nurikabe_checks import set_forces_pool, set_splits_walls
from nurikabe_coords import CoordinateSet, CoordinateSetSet
from nurikabe_model import CLEAR, UNKNOWN, Board, Island


def close_over_clear(board: Board, cs: CoordinateSet) -> None:
    """Grow cs in place until it has no CLEAR neighbour left."""
    frontier = board.neighbors_with(cs, CLEAR)
    while not frontier.is_empty():
        cs.add_all(frontier)
        frontier = board.neighbors_with(cs, CLEAR)


def find_possible_islands(board: Board, island: Island) -> Iterator[CoordinateSet]:
    """
    Yield every final shape the rooted island could take.

    Shapes grow one UNKNOWN cell at a time, each step swallowing any CLEAR
    cells it now touches. A shape is yielded when it reaches the target
    size, holds exactly one clue, and committing it would neither split the
    walls nor force a pool. Output order is deterministic.
    """
    target = island.target_size
    seen = CoordinateSetSet()

    def grow(current: CoordinateSet) -> Iterator[CoordinateSet]:
        if not seen.add(current):
            return
        if len(current) > target or board.count_numbered_islands(current) != 1:
            return
        if len(current) == target:
            if not set_splits_walls(board, current) and not set_forces_pool(board, current):
                yield current.copy()
            return
        for n in board.neighbors_with(current, UNKNOWN).sorted():
            nxt = current.copy()
            nxt.add(n)
            close_over_clear(board, nxt)
            yield from grow(nxt)

    start = island.members.copy()
    close_over_clear(board, start)
    yield from grow(start)


def populate_island_possibilities(board: Board) -> None:
    for island in board.islands:
        if not island.is_rooted():
            continue
        if island.is_complete():
            island.possibilities = [island.members.copy()]
        else:
            island.possibilities = list(find_possible_islands(board, island))
        island.refresh_reachable()
    board.possibilities_ready = True
    board.populate_unrooted_possibilities()
