import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from nurikabe_coords import Coordinate, CoordinateSet
from nurikabe_model import (
    CLEAR,
    PAINTED,
    UNKNOWN,
    Board,
    Island,
    IslandSpec,
    PuzzleDef,
    board_from_text,
    island_spec_char,
    parse_island_spec_char,
    parse_puzzle_text,
)

SMALL = "1_2\n___\n1__"


def test_parse_puzzle_text():
    problem, msg = parse_puzzle_text(SMALL)
    assert msg == "Loaded."
    assert (problem.width, problem.height) == (3, 3)
    assert problem.island_specs == [IslandSpec(0, 0, 1), IslandSpec(0, 2, 2), IslandSpec(2, 0, 1)]
    assert problem.clue_total == 4
    assert problem.target_wall_count == 5


@pytest.mark.parametrize("text, fragment", [
    ("", "Empty input."),
    ("1_\n___", "Ragged rows"),
    ("0_", "Zero-size clue"),
    ("1?", "Bad character: ?"),
])
def test_parse_puzzle_text_rejects(text, fragment):
    problem, msg = parse_puzzle_text(text)
    assert problem is None
    assert fragment in msg


def test_board_from_text_raises_on_bad_input():
    with pytest.raises(ValueError):
        board_from_text("1_\n_")


def test_clue_characters():
    assert parse_island_spec_char("7") == 7
    assert parse_island_spec_char("a") == 10
    assert parse_island_spec_char("z") == 35
    assert parse_island_spec_char("A") == 36
    assert parse_island_spec_char("W") == 58
    assert parse_island_spec_char("_") == -1
    assert island_spec_char(9) == "9"
    assert island_spec_char(10) == "a"
    assert island_spec_char(36) == "A"


@pytest.mark.parametrize("problem", [
    PuzzleDef(0, 3),
    PuzzleDef(2, 2, [IslandSpec(2, 0, 1)]),
    PuzzleDef(2, 2, [IslandSpec(0, 0, 0)]),
    PuzzleDef(2, 2, [IslandSpec(0, 0, 1), IslandSpec(0, 0, 2)]),
    PuzzleDef(2, 1, [IslandSpec(0, 0, 3)]),
])
def test_validate_rejects(problem):
    with pytest.raises(ValueError):
        problem.validate()
    with pytest.raises(ValueError):
        Board(problem)


def test_to_text_round_trips_clues():
    problem, _ = parse_puzzle_text("a__\n___")
    assert problem.to_text() == "a__\n___"


def test_board_initial_state():
    board = board_from_text(SMALL)
    assert board.total_marked == 3
    assert len(board.islands) == 3
    assert all(i.is_rooted() for i in board.islands)
    ones = [i for i in board.islands if i.target_size == 1]
    assert all(i.ready_for_borders for i in ones)
    assert board.render() == SMALL
    assert board.contains_error() is None


def test_adjacent_clues_are_an_error():
    board = board_from_text("12\n__")
    assert len(board.islands) == 1
    assert "joins 2 numbered cells" in board.contains_error()


def test_marks_are_idempotent():
    board = board_from_text(SMALL)
    assert board.mark_painted(0, 1)
    assert not board.mark_painted(0, 1)
    assert board.total_marked == 4
    assert len(board.wall_islands) == 1
    assert not board.mark_painted(5, 5)
    assert not board.mark(1, 1, UNKNOWN)


def test_decided_cells_never_flip():
    board = board_from_text(SMALL)
    board.mark_painted(0, 1)
    assert not board.mark_clear(0, 1)
    assert board.grid[0][1] == PAINTED
    assert "already decided" in board.contains_error()

    board = board_from_text(SMALL)
    assert not board.mark_painted(0, 0)
    assert board.grid[0][0] == CLEAR
    assert board.contains_error() is not None


def test_clear_mark_merges_into_clue_island():
    board = board_from_text(SMALL)
    assert board.mark_clear(1, 2)
    island = board.island_at(1, 2)
    assert island.root == Coordinate(0, 2)
    assert island.members == CoordinateSet([(0, 2), (1, 2)])
    assert island.is_complete()
    assert island.ready_for_borders
    assert len(board.islands) == 3


def test_unrooted_islands_join_rooted_one():
    board = board_from_text("3__\n___\n___")
    board.mark_clear(1, 1)
    assert len(board.islands) == 2
    assert not board.island_at(1, 1).is_rooted()
    board.mark_clear(0, 1)
    assert len(board.islands) == 1
    island = board.islands[0]
    assert island.root == Coordinate(0, 0)
    assert island.current_size == 3


def test_wall_islands_merge():
    board = board_from_text("1__\n___")
    board.mark_painted(0, 2)
    board.mark_painted(1, 0)
    assert len(board.wall_islands) == 2
    board.mark_painted(1, 1)
    board.mark_painted(1, 2)
    assert len(board.wall_islands) == 1
    assert board.wall_islands[0].current_size == 4


def test_diagonal_sets_merge():
    board = board_from_text("1__\n___\n__1")
    assert len(board.diagonal_sets) == 2
    board.mark_clear(1, 1)
    assert len(board.diagonal_sets) == 1
    assert board.diagonal_sets[0] == CoordinateSet([(0, 0), (1, 1), (2, 2)])


def test_unrooted_island_adopts_root_on_absorb():
    unrooted = Island.unrooted(1, 1)
    rooted = Island.rooted(0, 1, 3)
    rooted.possibilities = [CoordinateSet([(0, 1), (1, 1), (1, 2)])]
    unrooted.absorb(rooted)
    assert unrooted.root == Coordinate(0, 1)
    assert unrooted.target_size == 3
    assert unrooted.current_size == 2
    assert len(unrooted.possibilities) == 1
    assert (1, 2) in unrooted.reachable


def test_painted_mark_drops_possibilities():
    board = board_from_text("2__")
    island = board.islands[0]
    island.possibilities = [CoordinateSet([(0, 0), (0, 1)])]
    board.mark_painted(0, 1)
    assert island.possibilities == []


def test_clone_shares_nothing():
    board = board_from_text(SMALL)
    board.islands[1].possibilities = [CoordinateSet([(0, 2), (1, 2)])]
    clone = board.clone()
    clone.mark_painted(1, 2)
    assert board.grid[1][2] == UNKNOWN
    assert board.islands[1].possibilities == [CoordinateSet([(0, 2), (1, 2)])]
    assert clone.islands[1].possibilities == []
    assert clone.scratch_grid is not board.scratch_grid
    assert board.total_marked == 3


def test_pool_and_wall_count_errors():
    board = board_from_text("XX_\nXX_\n__1")
    assert board.contains_error() == "two-by-two pool at (r0, c0)"
    assert not board.is_solved()[0]

    board = board_from_text("2XX")
    assert board.contains_error() == "too many painted cells (2 > 1)"


def test_oversized_island_is_an_error():
    board = board_from_text("1.")
    assert board.contains_error() == "island at (r0, c0) has size 2 (should be 1)"


def test_stranded_wall_is_an_error():
    board = board_from_text("X.X")
    assert "cannot join the other walls" in board.contains_error()


def test_painted_counter_follows_marks():
    board = board_from_text("1X2\n___\n1__")
    assert board.total_painted == 1
    board.mark_painted(1, 0)
    board.mark_painted(1, 0)
    board.mark_clear(1, 2)
    assert board.total_painted == 2
    clone = board.clone()
    clone.mark_painted(1, 1)
    assert clone.total_painted == 3
    assert board.total_painted == 2


def test_stranded_wall_is_named():
    board = board_from_text("X__\n...\nX_X")
    assert board.contains_error() == "wall at (r2, c0) cannot join the other walls"


def test_empty_possibilities_only_count_once_ready():
    board = board_from_text("2__")
    assert board.contains_error() is None
    board.possibilities_ready = True
    assert board.contains_error() == "island at (r0, c0) has no possible shape"


def test_is_solved():
    board = board_from_text("1X2\nXX.\n1XX")
    assert board.is_solved() == (True, None)
    assert board.contains_error() is None

    board = board_from_text(SMALL)
    assert board.is_solved() == (False, "cell (r0, c1) is unknown")

    board = board_from_text("1X2\nX..\n1XX")
    solved, reason = board.is_solved()
    assert not solved


def test_render_and_snapshot():
    board = board_from_text("1X2\nXX.\n1XX")
    snap = board.snapshot()
    assert snap["rows"] == ["1X2", "XX.", "1XX"]
    assert snap["total_marked"] == snap["size"] == 9
    assert snap["solved"] is True
    assert snap["last_step"] is None
    assert "Solved: True" in board.string_debug()
