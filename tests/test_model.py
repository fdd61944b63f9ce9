"""Tests for the game-state model: score keeping, terminal state and its text dump."""

import pytest

from config import Config
from core import OccupiedCellError, Side, Tile
from model import Model, TiltResult

CHECKERBOARD_4 = [
    [2, 4, 2, 4],
    [4, 2, 4, 2],
    [2, 4, 2, 4],
    [4, 2, 4, 2],
]


def _empty(size=4):
    return [[0] * size for _ in range(size)]


class TestConstruction:
    def test_new_model_defaults(self):
        model = Model()
        assert model.size == Config.BOARD_SIZE
        assert model.max_piece == Config.MAX_PIECE
        assert model.score == 0
        assert model.max_score == 0
        assert model.game_over() is False

    def test_from_raw(self):
        raw = _empty()
        raw[0][1] = 8
        model = Model.from_raw(raw, score=12, max_score=40)
        assert model.tile(1, 0).value == 8
        assert model.tile(0, 0) is None
        assert model.score == 12
        assert model.max_score == 40
        assert model.values() == raw


class TestTilt:
    def test_tilt_reports_change_and_score(self):
        raw = _empty()
        raw[0] = [2, 2, 0, 0]
        model = Model.from_raw(raw, score=10)
        result = model.tilt(Side.WEST)
        assert result == TiltResult(tilted=True, score=14, game_over=False)
        assert model.score == 14
        assert model.tile(0, 0).value == 4
        assert model.tile(1, 0) is None

    def test_no_op_tilt(self):
        raw = _empty()
        raw[0][0] = 2
        model = Model.from_raw(raw)
        before = str(model)
        result = model.tilt(Side.SOUTH)
        assert result.tilted is False
        assert result.score == 0
        assert str(model) == before

    def test_reaching_max_piece_ends_game(self):
        raw = _empty()
        raw[3] = [0, 0, 1024, 1024]
        model = Model.from_raw(raw, score=500)
        result = model.tilt(Side.WEST)
        assert result.tilted is True
        assert result.score == 2548
        assert result.game_over is True
        assert model.reached_max_piece() is True
        assert model.max_score == 2548

    def test_addressing_unchanged_after_tilt(self):
        raw = _empty()
        raw[0][2] = 4
        model = Model.from_raw(raw)
        model.tilt(Side.NORTH)
        assert model.tile(2, 3).value == 4
        assert model.tile(2, 0) is None


class TestGameOver:
    def test_max_score_updated_when_over(self):
        model = Model.from_raw(CHECKERBOARD_4, score=100, max_score=50)
        assert model.game_over() is True
        assert model.max_score == 100

    def test_max_score_kept_when_higher(self):
        model = Model.from_raw(CHECKERBOARD_4, score=100, max_score=300)
        assert model.game_over() is True
        assert model.max_score == 300

    def test_add_tile_can_end_game(self):
        model = Model.from_raw([[2, 4], [4, 0]])
        model.add_tile(Tile(2, 1, 1))
        assert model.game_over() is True

    def test_add_tile_to_occupied_cell(self):
        model = Model.from_raw([[2, 0], [0, 0]])
        with pytest.raises(OccupiedCellError):
            model.add_tile(Tile(4, 0, 0))

    def test_clear_keeps_max_score(self):
        model = Model.from_raw(CHECKERBOARD_4, score=64)
        assert model.game_over() is True
        model.clear()
        assert model.score == 0
        assert model.max_score == 64
        assert model.game_over() is False
        assert model.values() == _empty()


class TestRendering:
    def test_text_dump(self):
        raw = _empty()
        raw[0][0] = 2
        raw[3][3] = 128
        model = Model.from_raw(raw, score=4, max_score=8)
        expected = (
            "\n[\n"
            "|    |    |    | 128|\n"
            "|    |    |    |    |\n"
            "|    |    |    |    |\n"
            "|   2|    |    |    |\n"
            "] 4 (max: 8) (game is not over) \n"
        )
        assert str(model) == expected

    def test_text_dump_of_finished_game(self):
        model = Model.from_raw(CHECKERBOARD_4, score=20)
        assert str(model).endswith("] 20 (max: 20) (game is over) \n")

    def test_equality_follows_text_dump(self):
        raw = _empty()
        raw[1][2] = 16
        a = Model.from_raw(raw, score=4)
        b = Model.from_raw(raw, score=4)
        assert a == b
        assert hash(a) == hash(b)
        assert a != Model.from_raw(raw, score=8)
        assert a != str(a)
