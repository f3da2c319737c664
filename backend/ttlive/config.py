import os

def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})")
    if value < 1:
        raise ValueError(f"{name} must be >= 1 (got {value})")
    return value


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Team rosters and the default per-player cap for team-set matches
TEAM_MIN_ROSTER = _int_env("TEAM_MIN_ROSTER", 1)
TEAM_MAX_ROSTER = _int_env("TEAM_MAX_ROSTER", 10)
DEFAULT_MAX_ENCOUNTERS_PER_PLAYER = _int_env("DEFAULT_MAX_ENCOUNTERS_PER_PLAYER", 2)

if TEAM_MIN_ROSTER > TEAM_MAX_ROSTER:
    raise ValueError("TEAM_MIN_ROSTER cannot exceed TEAM_MAX_ROSTER")

SCORE_RATE_LIMIT = os.getenv("SCORE_RATE_LIMIT") or "120/minute"

PLAYER_CATEGORIES = ("Super Senior", "Senior", "Junior")

# points awarded to each player of the winning side in the rankings table
RANKING_WIN_BONUS = 5
