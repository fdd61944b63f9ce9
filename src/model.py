# model.py
# This file holds the state of one 2048 game: the board, the score, the best
# score of the session and whether the game has ended.

import logging
from typing import List, NamedTuple, Optional, Sequence

from config import Config
from core import Board, Side, Tile, is_game_over, max_tile_exists, tilt_board

logger = logging.getLogger(__name__)


class TiltResult(NamedTuple):
    """Outcome of a tilt, for the caller to forward to whatever displays the game."""
    tilted: bool  # True if any tile moved or merged
    score: int    # Score after the tilt
    game_over: bool


class Model:
    """
    The state of a game of 2048.

    Coordinates are (col, row) with (0, 0) the bottom-left corner, like (x, y).
    """

    def __init__(self, size: Optional[int] = None, max_piece: Optional[int] = None):
        self._board = Board(size if size is not None else Config.BOARD_SIZE)
        self._max_piece = max_piece if max_piece is not None else Config.MAX_PIECE
        self._score = 0
        self._max_score = 0
        self._game_over = False

    @classmethod
    def from_raw(cls, raw_values: Sequence[Sequence[int]], score: int = 0, max_score: int = 0,
                 game_over: bool = False, max_piece: Optional[int] = None) -> "Model":
        """
        A game whose tiles are given by RAW_VALUES (0 for no tile), indexed by
        (row, col) with (0, 0) the bottom-left corner. Mostly used by tests.
        """
        model = cls.__new__(cls)
        model._board = Board.from_raw(raw_values)
        model._max_piece = max_piece if max_piece is not None else Config.MAX_PIECE
        model._score = score
        model._max_score = max_score
        model._game_over = game_over
        return model

    @property
    def size(self) -> int:
        return self._board.size

    @property
    def score(self) -> int:
        return self._score

    @property
    def max_score(self) -> int:
        """Best score of the session. Updated when a game ends."""
        return self._max_score

    @property
    def max_piece(self) -> int:
        return self._max_piece

    def tile(self, col: int, row: int) -> Optional[Tile]:
        return self._board.tile(col, row)

    def values(self) -> List[List[int]]:
        return self._board.values()

    def game_over(self) -> bool:
        """Returns True if MAX_PIECE is on the board or no move remains."""
        self._check_game_over()
        return self._game_over

    def reached_max_piece(self) -> bool:
        return max_tile_exists(self._board, self._max_piece)

    def _check_game_over(self) -> None:
        was_over = self._game_over
        self._game_over = is_game_over(self._board, self._max_piece)
        if self._game_over:
            self._max_score = max(self._score, self._max_score)
            if not was_over:
                logger.debug("Game over with score %d", self._score)

    def clear(self) -> None:
        """Empties the board and resets the score. The max score is kept."""
        self._board.clear()
        self._score = 0
        self._game_over = False

    def add_tile(self, tile: Tile) -> None:
        """Adds TILE to the board. Its cell must be empty."""
        self._board.add_tile(tile)
        self._check_game_over()

    def tilt(self, side: Side) -> TiltResult:
        """Tilts the board toward SIDE and adds any merged values to the score."""
        tilted, gained = tilt_board(self._board, side)
        self._score += gained
        self._check_game_over()
        return TiltResult(tilted, self._score, self._game_over)

    def __str__(self) -> str:
        size = self.size
        lines = ["", "["]
        for row in range(size - 1, -1, -1):
            cells = []
            for col in range(size):
                tile = self.tile(col, row)
                cells.append("|    " if tile is None else "|%4d" % tile.value)
            lines.append("".join(cells) + "|")
        over = "over" if self.game_over() else "not over"
        lines.append("] %d (max: %d) (game is %s) " % (self._score, self._max_score, over))
        return "\n".join(lines) + "\n"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))
