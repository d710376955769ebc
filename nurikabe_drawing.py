import math
import pygame
from dataclasses import dataclass
from typing import Tuple, Optional, List
from nurikabe_model import Board, CLEAR, PAINTED, island_spec_char
import grid_style

BASE_CELL_SIZE = 40


@dataclass
class Camera:
    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0

    def screen_to_world(self, sx: float, sy: float) -> Tuple[float, float]:
        return (sx - self.offset_x) / self.zoom, (sy - self.offset_y) / self.zoom

    def world_to_screen(self, wx: float, wy: float) -> Tuple[float, float]:
        return wx * self.zoom + self.offset_x, wy * self.zoom + self.offset_y


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def draw_board(
    screen: pygame.Surface,
    board: Board,
    camera: Camera,
    base_cell_size: int,
    font: Optional[pygame.font.Font] = None,
    affected_cells: Optional[List[Tuple[int, int]]] = None
) -> None:
    rows, cols = board.rows, board.cols
    cell_size = base_cell_size * camera.zoom
    if cell_size < 2:
        return

    # only visit cells that can land on the surface
    sw, sh = screen.get_size()
    wl, wt = camera.screen_to_world(-cell_size, -cell_size)
    wr, wb = camera.screen_to_world(sw + cell_size, sh + cell_size)
    c0 = clamp_int(int(math.floor(wl / base_cell_size)), 0, cols - 1)
    r0 = clamp_int(int(math.floor(wt / base_cell_size)), 0, rows - 1)
    c1 = clamp_int(int(math.ceil(wr / base_cell_size)), 0, cols - 1)
    r1 = clamp_int(int(math.ceil(wb / base_cell_size)), 0, rows - 1)

    for r in range(r0, r1 + 1):
        for c in range(c0, c1 + 1):
            sx, sy = camera.world_to_screen(c * base_cell_size, r * base_cell_size)
            rect = pygame.Rect(int(sx), int(sy), int(cell_size), int(cell_size))

            status = board.grid[r][c]
            if board.is_clue(r, c):
                pygame.draw.rect(screen, grid_style.COLOR_CLUE, rect)
            elif status == PAINTED:
                pygame.draw.rect(screen, grid_style.COLOR_PAINTED, rect)
            elif status == CLEAR:
                pygame.draw.rect(screen, grid_style.COLOR_CLEAR, rect)
            else:
                pygame.draw.rect(screen, grid_style.COLOR_UNKNOWN, rect)

            pygame.draw.rect(screen, grid_style.COLOR_GRID_LINES, rect, 1)

            if affected_cells and (r, c) in affected_cells:
                pygame.draw.rect(screen, grid_style.COLOR_SOLVER_HIGHLIGHT, rect, 4)

            if font is not None and board.is_clue(r, c):
                txt = island_spec_char(board.clue_at[(r, c)])
                surf = font.render(txt, True, grid_style.COLOR_TEXT_CLUE)
                screen.blit(
                    surf,
                    (rect.x + (rect.width - surf.get_width()) // 2, rect.y + (rect.height - surf.get_height()) // 2)
                )


def render_board(board: Board, cell_size: int = BASE_CELL_SIZE,
                 affected_cells: Optional[List[Tuple[int, int]]] = None) -> pygame.Surface:
    """Draw the whole board onto a new off-screen surface."""
    pygame.font.init()
    surface = pygame.Surface((board.cols * cell_size, board.rows * cell_size))
    surface.fill(grid_style.COLOR_BG)
    font = pygame.font.Font(None, max(8, int(cell_size * 0.8)))
    draw_board(surface, board, Camera(), cell_size, font=font, affected_cells=affected_cells)
    return surface


def save_board_image(board: Board, path: str, cell_size: int = BASE_CELL_SIZE,
                     affected_cells: Optional[List[Tuple[int, int]]] = None) -> None:
    pygame.image.save(render_board(board, cell_size, affected_cells), path)
