import glob
import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tests.test_utils import print_execution_times, read_text, solve_text

PUZZLE_FILES = sorted(glob.glob(os.path.join(os.path.dirname(__file__), 'puzzle_*.txt')))
EXECUTION_TIMES = []


def get_solution_path(grid_path: str) -> str:
    return grid_path + ".solution"


@pytest.fixture(scope="module", autouse=True)
def report_times():
    yield
    print_execution_times(EXECUTION_TIMES)


@pytest.mark.parametrize("grid_path", PUZZLE_FILES, ids=os.path.basename)
def test_puzzle_matches_solution(grid_path):
    board, solved, reason, elapsed = solve_text(read_text(grid_path), make_guesses=True)
    EXECUTION_TIMES.append((os.path.basename(grid_path), elapsed))

    assert solved, f"{grid_path} not solved: {reason}"
    expected = read_text(get_solution_path(grid_path)).strip()
    assert board.render() == expected


@pytest.mark.parametrize("grid_path", PUZZLE_FILES, ids=os.path.basename)
def test_puzzle_solves_without_guessing(grid_path):
    board, solved, reason, _ = solve_text(read_text(grid_path), make_guesses=False)
    assert solved, f"{grid_path} needed guesses: {reason}"
    assert board.contains_error() is None
