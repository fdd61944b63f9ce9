# core.py
# This file is the board transition engine for a 2048 game: tiles, the board
# with its rotating viewing perspective, the tilt resolver and the
# terminal-state queries. It performs no I/O and holds no randomness.

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

logger = logging.getLogger(__name__)

MAX_PIECE = 2048


class OccupiedCellError(ValueError):
    """Raised when a tile is added to a cell that already holds a tile."""

    def __init__(self, col: int, row: int):
        super().__init__(f"Cell ({col}, {row}) is already occupied.")
        self.col = col
        self.row = row


class Side(Enum):
    """
    The side of the board a tilt moves tiles toward.
    The value doubles as the rotation index (clockwise quarter turns from NORTH).
    """
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    @classmethod
    def from_rotation(cls, rotation: int) -> "Side":
        return cls(rotation % 4)

    def opposite(self) -> "Side":
        return Side.from_rotation(self.value + 2)


# (col0, row0, dcol, drow) for each side.
_FRAMES: Dict[Side, Tuple[int, int, int, int]] = {
    Side.NORTH: (0, 0, 0, 1),
    Side.EAST: (0, 1, 1, 0),
    Side.SOUTH: (1, 1, 0, -1),
    Side.WEST: (1, 0, -1, 0),
}


def physical_coords(col: int, row: int, side: Side, size: int) -> Tuple[int, int]:
    """
    Maps a coordinate seen from SIDE to the board's storage coordinate.
    Seen from any side, "forward" is the direction of increasing row.
    Args:
        col (int): Column in the side's viewing frame.
        row (int): Row in the side's viewing frame.
        side (Side): The side being viewed from. NORTH is the identity.
        size (int): The board dimension.
    Returns:
        Tuple[int, int]: The (col, row) in storage.
    """
    col0, row0, dcol, drow = _FRAMES[side]
    last = size - 1
    return (col0 * last + col * drow + row * dcol,
            row0 * last - col * dcol + row * drow)


@dataclass(frozen=True, eq=False)
class Tile:
    """A numbered tile at a storage position. Tiles compare by identity."""
    value: int
    col: int
    row: int

    def __post_init__(self):
        if not isinstance(self.value, int) or self.value <= 0 or self.value & (self.value - 1):
            raise ValueError(f"Tile value must be a positive power of two, got {self.value!r}.")

    def moved_to(self, col: int, row: int) -> "Tile":
        return Tile(self.value, col, row)

    def merged_to(self, col: int, row: int) -> "Tile":
        return Tile(self.value * 2, col, row)


# --- Board ---

class Board:
    """
    A square grid of optional tiles addressed by (col, row), row 0 at the bottom.

    Reads and moves go through the current viewing perspective, which the tilt
    resolver rotates so that every tilt can be handled as a tilt toward NORTH.
    Tiles always record their storage position.
    """

    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("Board size must be a positive integer.")
        self._size = size
        self._cells: List[List[Optional[Tile]]] = [[None] * size for _ in range(size)]
        self._side = Side.NORTH

    @classmethod
    def from_raw(cls, raw_values: Sequence[Sequence[int]]) -> "Board":
        """
        Builds a board from raw values indexed (row, col), (0, 0) being the
        bottom-left corner and 0 meaning an empty cell.
        Raises:
            ValueError: If the grid is empty, not square, or holds an invalid value.
        """
        size = len(raw_values)
        if size == 0 or not all(len(row) == size for row in raw_values):
            raise ValueError("Board must be a non-empty square matrix.")
        board = cls(size)
        for row in range(size):
            for col in range(size):
                value = raw_values[row][col]
                if value:
                    board.add_tile(Tile(value, col, row))
        return board

    @property
    def size(self) -> int:
        return self._size

    @property
    def perspective(self) -> Side:
        return self._side

    def set_viewing_perspective(self, side: Side) -> None:
        self._side = side

    def reset_viewing_perspective(self) -> None:
        self._side = Side.NORTH

    def _physical(self, col: int, row: int) -> Tuple[int, int]:
        if not (0 <= col < self._size and 0 <= row < self._size):
            raise IndexError(f"({col}, {row}) is outside a {self._size}x{self._size} board.")
        return physical_coords(col, row, self._side, self._size)

    def tile(self, col: int, row: int) -> Optional[Tile]:
        """Returns the tile at (COL, ROW) in the current perspective, or None."""
        pcol, prow = self._physical(col, row)
        return self._cells[pcol][prow]

    def add_tile(self, tile: Tile) -> None:
        """
        Places TILE at its own storage position.
        Raises:
            OccupiedCellError: If that cell already holds a tile.
            IndexError: If the position is off the board.
        """
        if not (0 <= tile.col < self._size and 0 <= tile.row < self._size):
            raise IndexError(f"({tile.col}, {tile.row}) is outside a {self._size}x{self._size} board.")
        if self._cells[tile.col][tile.row] is not None:
            raise OccupiedCellError(tile.col, tile.row)
        self._cells[tile.col][tile.row] = tile

    def move(self, col: int, row: int, tile: Tile) -> Tile:
        """
        Moves TILE to (COL, ROW) in the current perspective.
        An occupant of equal value is merged with TILE into a single tile of
        twice the value.
        Args:
            col (int): Destination column.
            row (int): Destination row.
            tile (Tile): A tile currently on this board.
        Returns:
            Tile: The tile now at the destination (TILE itself if it did not move).
        Raises:
            ValueError: If TILE is not on the board or the occupant's value differs.
        """
        pcol, prow = self._physical(col, row)
        if self._cells[tile.col][tile.row] is not tile:
            raise ValueError(f"{tile!r} is not on this board.")
        if (pcol, prow) == (tile.col, tile.row):
            return tile
        occupant = self._cells[pcol][prow]
        if occupant is None:
            placed = tile.moved_to(pcol, prow)
        elif occupant.value == tile.value:
            placed = tile.merged_to(pcol, prow)
        else:
            raise ValueError(f"Cannot merge {tile.value} into {occupant.value}.")
        self._cells[tile.col][tile.row] = None
        self._cells[pcol][prow] = placed
        return placed

    def clear(self) -> None:
        for col in range(self._size):
            for row in range(self._size):
                self._cells[col][row] = None

    def tiles(self) -> Iterator[Tile]:
        """Yields every tile on the board in storage order."""
        for column in self._cells:
            for tile in column:
                if tile is not None:
                    yield tile

    def values(self) -> List[List[int]]:
        """Returns the raw value grid, indexed like the input of from_raw."""
        return [[self._cells[col][row].value if self._cells[col][row] else 0
                 for col in range(self._size)]
                for row in range(self._size)]


# --- Tilt Resolver ---

def _tilt_column(board: Board, col: int) -> Tuple[bool, int]:
    """
    Slides and merges one column toward the far edge (highest row).
    Returns:
        Tuple[bool, int]: Whether anything moved, and the score gained.
    """
    size = board.size
    merged: Set[Tile] = set()
    changed = False
    score = 0

    # The far edge tile never moves on its own, so start one row in.
    for row in range(size - 2, -1, -1):
        tile = board.tile(col, row)
        if tile is None:
            continue

        dest = row
        while dest + 1 < size and board.tile(col, dest + 1) is None:
            dest += 1

        ahead = board.tile(col, dest + 1) if dest + 1 < size else None
        if ahead is not None and ahead.value == tile.value and ahead not in merged:
            result = board.move(col, dest + 1, tile)
            merged.add(result)
            score += result.value
            changed = True
        elif dest != row:
            board.move(col, dest, tile)
            changed = True

    return changed, score


def tilt_board(board: Board, side: Side) -> Tuple[bool, int]:
    """
    Tilts every tile on the board toward SIDE, in place.

    1. Tiles slide as far toward SIDE as they can.
    2. Two adjacent tiles of equal value merge into one of twice the value,
       and that value is added to the score.
    3. A tile produced by a merge does not merge again during the same tilt.
    4. Of three equal tiles in a line, the two nearest SIDE merge.
    Args:
        board (Board): The board to tilt.
        side (Side): The side to tilt toward.
    Returns:
        Tuple[bool, int]: Whether the board changed, and the score gained.
    """
    tilted = False
    score = 0
    board.set_viewing_perspective(side)
    try:
        for col in range(board.size):
            col_changed, col_score = _tilt_column(board, col)
            tilted = tilted or col_changed
            score += col_score
    finally:
        board.reset_viewing_perspective()
    logger.debug("Tilt %s: tilted=%s score_delta=%d", side.name, tilted, score)
    return tilted, score


# --- Terminal-State Evaluator ---

def empty_space_exists(board: Board) -> bool:
    """Returns True if at least one cell of the board is empty."""
    n = board.size
    empty_cells = [(col, row) for col in range(n) for row in range(n)
                   if board.tile(col, row) is None]
    return len(empty_cells) > 0


def max_tile_exists(board: Board, max_piece: int = MAX_PIECE) -> bool:
    """Returns True if any tile has reached MAX_PIECE."""
    n = board.size
    winning = [(col, row) for col in range(n) for row in range(n)
               if board.tile(col, row) is not None and board.tile(col, row).value == max_piece]
    return len(winning) > 0


def at_least_one_move_exists(board: Board) -> bool:
    """
    Returns True if any tilt could change the board:
    1. There is at least one empty cell, or
    2. Two horizontally or vertically adjacent tiles share a value.
    """
    if empty_space_exists(board):
        return True
    n = board.size
    equal_pairs = 0
    for col in range(n):
        for row in range(n):
            value = board.tile(col, row).value
            if col + 1 < n and board.tile(col + 1, row).value == value:
                equal_pairs += 1
            if row + 1 < n and board.tile(col, row + 1).value == value:
                equal_pairs += 1
    return equal_pairs > 0


def is_game_over(board: Board, max_piece: int = MAX_PIECE) -> bool:
    """The game ends when MAX_PIECE is on the board or no move remains."""
    return max_tile_exists(board, max_piece) or not at_least_one_move_exists(board)
