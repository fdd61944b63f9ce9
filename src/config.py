import os

class Config:
    # Board dimension N of the N x N board
    BOARD_SIZE = int(os.environ.get('GAME2048_BOARD_SIZE', '4'))
    # Tile value that ends the game as a win
    MAX_PIECE = int(os.environ.get('GAME2048_MAX_PIECE', '2048'))
    # Chance that a spawned tile is a 4 instead of a 2
    FOUR_PROBABILITY = float(os.environ.get('GAME2048_FOUR_PROBABILITY', '0.1'))
    # slowapi limit string applied to every endpoint
    RATE_LIMIT = os.environ.get('GAME2048_RATE_LIMIT', '100/minute')
    LOG_LEVEL = os.environ.get('GAME2048_LOG_LEVEL', 'INFO').upper()
