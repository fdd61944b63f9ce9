import logging
import random
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_validator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import core
from config import Config
from model import Model

logging.basicConfig(level=Config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="A stateless API over the 2048 board engine. "\
                "The client keeps the game state (board, score, max score) and sends it with every move.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- New tile source ---

def add_random_tile(model: Model, rng: Optional[random.Random] = None,
                    four_probability: Optional[float] = None) -> bool:
    """
    Adds a new tile (a 2, or a 4 with FOUR_PROBABILITY) to a random empty cell.
    Args:
        model (Model): The game to add a tile to.
        rng (random.Random): Source of randomness. Defaults to the random module.
        four_probability (float): Chance of a 4. Defaults to Config.FOUR_PROBABILITY.
    Returns:
        bool: True if a tile was added, False if the board is full.
    """
    rng = rng or random
    if four_probability is None:
        four_probability = Config.FOUR_PROBABILITY
    empty_cells = [(col, row) for row in range(model.size) for col in range(model.size)
                   if model.tile(col, row) is None]
    if not empty_cells:
        return False
    col, row = rng.choice(empty_cells)
    value = 4 if rng.random() < four_probability else 2
    model.add_tile(core.Tile(value, col, row))
    return True


# Boards travel top row first, as they are displayed; the engine counts rows from the bottom.
def _board_to_wire(model: Model) -> List[List[int]]:
    return list(reversed(model.values()))


def _board_from_wire(board: List[List[int]]) -> List[List[int]]:
    return list(reversed(board))


# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    size: Optional[int] = Field(
        default=None,
        gt=1, # Board size must be at least 2x2
        description="Size of the N x N game board. Defaults to the server's configured size."
    )
    max_piece: Optional[int] = Field(
        default=None,
        gt=0,
        description="The tile value that ends the game (e.g., 2048). Defaults to the server's configured value."
    )

class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    board: List[List[int]] = Field(..., description="The N x N board as a list of rows, top row first. 0 is empty.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    max_score: int = Field(..., ge=0, description="Best score so far. Updated when a game ends.")
    game_over: bool = Field(..., description="True if the max piece was reached or no move remains.")
    max_piece: int = Field(..., gt=0, description="The tile value that ends this game.")
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")
    rendering: str = Field(..., description="Text dump of the game, as used for logging.")


class MoveRequestData(BaseModel):
    """Data required to make a move."""
    board: List[List[int]] = Field(..., description="Current board before the move, top row first.")
    score: int = Field(..., ge=0, description="Current score before the move.")
    max_score: int = Field(default=0, ge=0, description="Best score so far.")
    direction: core.Side = Field(
        ...,
        description="Side to tilt toward (0 NORTH, 1 EAST, 2 SOUTH, 3 WEST)."
    )
    max_piece: int = Field(default=Config.MAX_PIECE, gt=0, description="The tile value that ends this game.")

    @field_validator("board")
    @classmethod
    def check_board(cls, board: List[List[int]]) -> List[List[int]]:
        if not board or not all(len(row) == len(board) for row in board):
            raise ValueError("Board must be a non-empty square matrix.")
        for row in board:
            for value in row:
                if value < 0 or (value and value & (value - 1)):
                    raise ValueError(f"Invalid tile value {value}; expected 0 or a power of two.")
        return board

class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    tilted: bool = Field(
        ...,
        description="True if the tilt moved or merged at least one tile."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if the move changed nothing or the game ended."
    )


def _state_fields(model: Model) -> dict:
    return dict(
        board=_board_to_wire(model),
        score=model.score,
        max_score=model.max_score,
        game_over=model.game_over(),
        max_piece=model.max_piece,
        board_size=model.size,
        rendering=str(model),
    )

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(Config.RATE_LIMIT)
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Starts a new game on an empty board with two random tiles.

    - **size**: Dimension of the N x N board.
    - **max_piece**: Tile value that ends the game.
    """
    try:
        model = Model(settings.size, settings.max_piece)
        add_random_tile(model)
        add_random_tile(model)
        return GameStateData(**_state_fields(model))
    except ValueError as e:
        logger.warning("Rejected new game request: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Unexpected error in /game/new")
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(Config.RATE_LIMIT)
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Tilts the given board toward `direction`.

    The API will:
    1. Slide and merge the tiles, adding merged values to the score.
    2. If the tilt changed the board, add a new random tile (2 or 4).
    3. Report whether the game is over.
    """
    message_for_client: Optional[str] = None
    try:
        model = Model.from_raw(
            _board_from_wire(request_data.board),
            score=request_data.score,
            max_score=request_data.max_score,
            max_piece=request_data.max_piece,
        )
        result = model.tilt(request_data.direction)

        if result.tilted:
            add_random_tile(model)
        else:
            message_for_client = "Move was not effective; board state unchanged by tilt."

        if model.game_over():
            if model.reached_max_piece():
                message_for_client = f"Congratulations! You reached {model.max_piece}!"
            else:
                message_for_client = "Game Over. No more valid moves."

        return MoveResponseData(
            **_state_fields(model),
            tilted=result.tilted,
            message=message_for_client
        )
    except ValueError as e:
        logger.warning("Rejected move request: %s", e)
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.exception("Unexpected error in /game/move")
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")
