import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from nurikabe_checks import bridge_cells, set_forces_pool, set_splits_walls, walls_reachable_from
from nurikabe_coords import Coordinate, CoordinateSet
from nurikabe_model import board_from_text

BLANK_3 = "___\n___\n___"
BLANK_5 = "\n".join(["_____"] * 5)


def test_column_splits_walls_along_border():
    board = board_from_text(BLANK_3)
    assert set_splits_walls(board, CoordinateSet([(0, 1), (1, 1), (2, 1)]))


def test_corner_cell_does_not_split():
    board = board_from_text(BLANK_3)
    assert not set_splits_walls(board, CoordinateSet([(0, 0)]))


def test_enclosed_wall_is_a_split():
    board = board_from_text("_____\n_____\n__X__\n_____\n_____")
    ring = CoordinateSet([(1, 1), (1, 2), (1, 3), (2, 3), (3, 3), (3, 2), (3, 1), (2, 1)])
    assert set_splits_walls(board, ring)


def test_diagonal_clear_cells_join_the_barrier():
    board = board_from_text("__.\n___\n___")
    assert set_splits_walls(board, CoordinateSet([(1, 1), (2, 1)]))


def test_scratch_grid_is_reusable():
    board = board_from_text(BLANK_3)
    assert set_splits_walls(board, CoordinateSet([(0, 1), (1, 1), (2, 1)]))
    assert not set_splits_walls(board, CoordinateSet([(0, 0)]))


def test_interior_shapes_do_not_split():
    board = board_from_text(BLANK_5)
    assert not set_splits_walls(board, CoordinateSet([(2, 2)]))
    assert not set_splits_walls(board, CoordinateSet([(1, 1), (1, 2), (2, 1), (2, 2)]))


def test_staircase_between_opposite_corners_splits():
    board = board_from_text(BLANK_5)
    stairs = CoordinateSet([(0, 0), (1, 0), (1, 1), (2, 1), (2, 2), (3, 2), (3, 3), (4, 3), (4, 4)])
    assert set_splits_walls(board, stairs)


def test_interior_staircase_leaves_corner_walls_joined():
    board = board_from_text("X____\n_____\n_____\n_____\n____X")
    stairs = CoordinateSet([(1, 1), (1, 2), (2, 2), (2, 3), (3, 3)])
    assert not set_splits_walls(board, stairs)


def test_forces_pool():
    board = board_from_text("XX_\nX__\n___")
    assert set_forces_pool(board, CoordinateSet([(1, 2)]))
    assert not set_forces_pool(board, CoordinateSet([(2, 2)]))

    board = board_from_text("___\n__X\n_XX")
    assert set_forces_pool(board, CoordinateSet([(0, 1)]))


def test_walls_reachable_from_stops_at_clear_cells():
    board = board_from_text("X.X\n___")
    assert walls_reachable_from(board, Coordinate(0, 0)) == CoordinateSet(
        [(0, 0), (1, 0), (1, 1), (1, 2), (0, 2)])
    blocked = walls_reachable_from(board, Coordinate(0, 0), blocked=Coordinate(1, 1))
    assert blocked == CoordinateSet([(0, 0), (1, 0)])


def test_bridge_cells():
    board = board_from_text("X_X\n_._")
    assert bridge_cells(board) == [Coordinate(0, 1)]

    board = board_from_text("X__\n___")
    assert bridge_cells(board) == []
