from ttlive.scoring import relay
from ttlive.scoring.state import Tally


def test_leg_closes_at_cumulative_target():
    cumulative = Tally(9, 7)

    result = relay.apply_relay_point(cumulative, 1, leg_target=10, final_target=30)

    assert result.cumulative == Tally(10, 7)
    assert result.leg_winner == 1
    assert result.match_winner is None


def test_point_below_target_does_not_close_leg():
    result = relay.apply_relay_point(Tally(12, 19), 1, leg_target=20, final_target=30)

    assert result.cumulative == Tally(13, 19)
    assert result.leg_winner is None


def test_final_target_wins_match():
    result = relay.apply_relay_point(Tally(25, 29), 2, leg_target=30, final_target=30)

    assert result.leg_winner == 2
    assert result.match_winner == 2


def test_server_swaps_every_two_points_within_leg():
    leg_start = Tally(10, 8)
    server = 2
    seen = []
    cumulative = leg_start
    for side in [1, 1, 2, 2]:
        cumulative = cumulative.add(side)
        server = relay.next_relay_server(cumulative, leg_start, server)
        seen.append(server)

    assert seen == [2, 1, 1, 2]
