"""Internal application services.

``orchestrator``, ``rotation``, ``history`` and ``validation`` are pure
helpers with no I/O; ``live_scoring`` and ``rankings`` talk to the database.
"""

from .history import undo
from .orchestrator import MatchView, score_point, setup_encounter
from .rotation import validate as validate_rotation
from .validation import validate_match_config

__all__ = [
    "MatchView",
    "score_point",
    "setup_encounter",
    "undo",
    "validate_match_config",
    "validate_rotation",
]
