import os
import sys

import pygame

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import grid_style
from nurikabe_drawing import Camera, clamp_int, draw_board, render_board, save_board_image
from nurikabe_model import board_from_text

CELL = 20


def color_at(surface, r, c, cell=CELL):
    return tuple(surface.get_at((c * cell + cell // 2, r * cell + cell // 2)))[:3]


def test_cell_colours():
    board = board_from_text("1X2\nX_.\n1XX")
    surface = render_board(board, cell_size=CELL)
    assert surface.get_size() == (3 * CELL, 3 * CELL)
    assert color_at(surface, 0, 1) == grid_style.COLOR_PAINTED
    assert color_at(surface, 1, 1) == grid_style.COLOR_UNKNOWN
    assert color_at(surface, 1, 2) == grid_style.COLOR_CLEAR


def test_camera_offsets_the_grid():
    board = board_from_text("X_")
    surface = pygame.Surface((2 * CELL, CELL))
    surface.fill(grid_style.COLOR_BG)
    draw_board(surface, board, Camera(offset_x=CELL), CELL)
    # painted cell shifted one cell right, unknown cell off-surface
    assert tuple(surface.get_at((CELL + CELL // 2, CELL // 2)))[:3] == grid_style.COLOR_PAINTED
    assert tuple(surface.get_at((CELL // 2, CELL // 2)))[:3] == grid_style.COLOR_BG


def test_camera_round_trip():
    camera = Camera(offset_x=5, offset_y=-3, zoom=2.0)
    assert camera.screen_to_world(*camera.world_to_screen(7, 11)) == (7, 11)
    assert clamp_int(9, 0, 4) == 4
    assert clamp_int(-1, 0, 4) == 0


def test_save_board_image(tmp_path):
    board = board_from_text("1X2\nXX.\n1XX")
    path = str(tmp_path / "board.png")
    save_board_image(board, path, cell_size=CELL, affected_cells=[(0, 1)])
    assert os.path.getsize(path) > 0
    loaded = pygame.image.load(path)
    assert loaded.get_size() == (3 * CELL, 3 * CELL)
