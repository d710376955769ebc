# Nurikabe Grid Style Definitions

# Cell States
COLOR_CLUE = (255, 255, 255)
COLOR_PAINTED = (20, 20, 20)   # Wall
COLOR_CLEAR = (235, 235, 235)  # Island (not a clue)
COLOR_UNKNOWN = (180, 180, 180)

# Lines and Outlines
COLOR_GRID_LINES = (70, 70, 70)
COLOR_SOLVER_HIGHLIGHT = (255, 255, 0)   # Yellow outline for changed cells

# Text
COLOR_TEXT_CLUE = (0, 0, 0)

# Image export
COLOR_BG = (30, 30, 30)
