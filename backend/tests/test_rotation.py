from dataclasses import replace

import pytest

from ttlive.exceptions import RotationError
from ttlive.scoring.formats import (
    EncounterFormat,
    MatchKind,
    SeriesConfig,
    TeamSetConfig,
    initial_score,
)
from ttlive.scoring.state import Encounter, EncounterStatus, Tally
from ttlive.services import rotation

ROSTER_A = ["a1", "a2", "a3"]
ROSTER_B = ["b1", "b2", "b3"]


def _finished(score, index, side1, side2, winner=1):
    encounter = Encounter(
        index=index,
        side1_players=tuple(side1),
        side2_players=tuple(side2),
        status=EncounterStatus.FINISHED,
        final_score=Tally(11, 5) if winner == 1 else Tally(5, 11),
        winner=winner,
    )
    encounters = score.encounters[:index] + (encounter,) + score.encounters[index + 1 :]
    return replace(score, encounters=encounters)


def test_player_at_cap_is_rejected_and_score_is_untouched():
    config = TeamSetConfig(
        encounter_format=EncounterFormat.SINGLE,
        number_of_encounters=5,
        max_encounters_per_player=2,
    )
    score = initial_score(config)
    score = _finished(score, 0, ["a1"], ["b1"])
    score = _finished(score, 1, ["a1"], ["b2"])
    before = score

    assert rotation.appearance_counts(score)["a1"] == 2
    with pytest.raises(RotationError) as excinfo:
        rotation.validate(config, score, 1, ["a1"], ROSTER_A)

    assert excinfo.value.code == "rotation_violation"
    assert score == before
    # under the cap is still fine
    rotation.validate(config, score, 2, ["b1"], ROSTER_B)


def test_player_must_be_on_roster():
    config = TeamSetConfig(encounter_format=EncounterFormat.SINGLE, number_of_encounters=3)

    with pytest.raises(RotationError):
        rotation.validate(config, initial_score(config), 1, ["b1"], ROSTER_A)


def test_duplicate_pick_is_rejected():
    config = TeamSetConfig(encounter_format=EncounterFormat.PAIR, number_of_encounters=3)

    with pytest.raises(RotationError):
        rotation.validate(config, initial_score(config), 1, ["a1", "a1"], ROSTER_A)


def test_repeat_pairs_follow_match_setting():
    allowed = TeamSetConfig(
        encounter_format=EncounterFormat.PAIR,
        number_of_encounters=3,
        max_encounters_per_player=3,
    )
    forbidden = replace(allowed, allow_repeat_pairs=False)
    score = _finished(initial_score(allowed), 0, ["a1", "a2"], ["b1", "b2"])

    rotation.validate(allowed, score, 1, ["a2", "a1"], ROSTER_A)
    with pytest.raises(RotationError):
        rotation.validate(forbidden, score, 1, ["a2", "a1"], ROSTER_A)
    rotation.validate(forbidden, score, 1, ["a1", "a3"], ROSTER_A)


def test_same_player_cannot_play_both_sides():
    config = TeamSetConfig(encounter_format=EncounterFormat.SINGLE, number_of_encounters=3)
    shared = {1: ["a1", "x"], 2: ["b1", "x"]}

    with pytest.raises(RotationError):
        rotation.validate_selection(config, initial_score(config), {1: ["x"], 2: ["x"]}, shared)


def test_series_matches_have_no_rotation():
    config = SeriesConfig(kind=MatchKind.INDIVIDUAL, sets_to_win=2)

    with pytest.raises(TypeError):
        rotation.validate(config, initial_score(config), 1, ["p1"], ["p1"])


def test_selection_must_leave_enough_players_for_later_encounters():
    config = TeamSetConfig(
        encounter_format=EncounterFormat.PAIR,
        number_of_encounters=4,
        max_encounters_per_player=2,
    )
    roster = ["a1", "a2", "a3", "a4", "a5"]
    score = initial_score(config)
    score = _finished(score, 0, ["a1", "a2"], ["b1", "b2"])
    score = _finished(score, 1, ["a3", "a4"], ["b3", "b4"])
    score = _finished(score, 2, ["a1", "a3"], ["b1", "b3"])
    before = score

    # a5 alone would be left for a possible tiebreaker pair
    with pytest.raises(RotationError):
        rotation.validate(config, score, 1, ["a2", "a4"], roster)
    assert score == before
    rotation.validate(config, score, 1, ["a2", "a5"], roster)


def test_can_field_counts_one_slot_per_player_per_encounter():
    assert rotation.can_field([2, 2, 2], 3, 1)
    assert not rotation.can_field([2, 2], 5, 1)
    # one player with spare slots cannot make a pair on their own
    assert not rotation.can_field([0, 0, 3], 1, 2)
    assert rotation.can_field([], 0, 2)
