import pytest

from ttlive.exceptions import GameAlreadyWon
from ttlive.scoring import table_tennis
from ttlive.scoring.state import Tally


def _play(points, game=None, server=1):
    game = game or Tally()
    winner = None
    for side in points:
        result = table_tennis.apply_point(game, side)
        game, winner = result.game, result.winner
        server = table_tennis.next_server(game, server)
    return game, winner, server


def test_game_wins_at_11_with_two_point_margin():
    game, winner, _ = _play([1] * 11)

    assert winner == 1
    assert game == Tally(11, 0)


def test_requires_two_point_gap_in_deuce():
    game, winner, _ = _play([1, 2] * 10)
    assert game == Tally(10, 10)
    assert winner is None

    game, winner, _ = _play([1, 2, 1], game)
    assert game == Tally(12, 11)
    assert winner is None

    game, winner, _ = _play([1], game)
    assert winner == 1
    assert game == Tally(13, 11)


def test_eleven_nine_wins_but_eleven_ten_does_not():
    game, winner, _ = _play([2] * 9 + [1] * 11)
    assert (game, winner) == (Tally(11, 9), 1)

    game, winner, _ = _play([2] * 10 + [1] * 11)
    assert (game, winner) == (Tally(11, 10), None)


def test_no_point_after_game_is_decided():
    game, winner, _ = _play([2] * 11)
    assert winner == 2

    with pytest.raises(GameAlreadyWon):
        table_tennis.apply_point(game, 1)


def test_service_changes_every_two_points():
    servers = []
    game, server = Tally(), 1
    for side in [1, 2, 1, 1, 2, 2]:
        game = table_tennis.apply_point(game, side).game
        server = table_tennis.next_server(game, server)
        servers.append(server)

    assert servers == [1, 2, 2, 1, 1, 2]


def test_service_alternates_every_point_from_deuce():
    game, _, server = _play([1, 2] * 10)
    assert game.total == 20

    seen = []
    for side in [1, 2, 1, 2]:
        game = table_tennis.apply_point(game, side).game
        server = table_tennis.next_server(game, server)
        seen.append(server)

    assert all(a != b for a, b in zip(seen, seen[1:]))


def test_loser_serves_first_next_game():
    assert table_tennis.server_after_game(1) == 2
    assert table_tennis.server_after_game(2) == 1
