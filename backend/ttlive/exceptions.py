from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class ValidationError(DomainException):
    """Malformed input: wrong player count, unknown roster player, bad config."""

    def __init__(self, detail: str, *, code: str = "validation_error") -> None:
        super().__init__(
            status_code=400,
            title="Invalid request",
            detail=detail,
            code=code,
        )


class RotationError(ValidationError):
    """A proposed encounter selection breaks a roster rotation rule."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail, code="rotation_violation")


class StateError(DomainException):
    """The operation is not allowed in the match's current status."""

    def __init__(self, detail: str, *, code: str = "invalid_state") -> None:
        super().__init__(
            status_code=409,
            title="Invalid match state",
            detail=detail,
            code=code,
        )


class NoHistoryError(StateError):
    def __init__(self, match_id: str | None = None) -> None:
        detail = "no points to undo"
        if match_id:
            detail = f"match '{match_id}' has no points to undo"
        super().__init__(detail, code="no_history")


class GameAlreadyWon(StateError):
    def __init__(self) -> None:
        super().__init__("game is already decided", code="game_already_won")


class ConflictError(DomainException):
    """Concurrent modification detected while saving; safe to retry."""

    def __init__(self, match_id: str) -> None:
        super().__init__(
            status_code=409,
            title="Concurrent modification",
            detail=f"match '{match_id}' was modified concurrently; retry the request",
            code="concurrent_modification",
        )


class NotFoundError(DomainException):
    def __init__(self, kind: str, object_id: str) -> None:
        super().__init__(
            status_code=404,
            title=f"{kind.capitalize()} not found",
            detail=f"{kind} '{object_id}' not found",
            code=f"{kind}_not_found",
        )


class MatchNotFound(NotFoundError):
    def __init__(self, match_id: str) -> None:
        super().__init__("match", match_id)


class PlayerNotFound(NotFoundError):
    def __init__(self, player_id: str) -> None:
        super().__init__("player", player_id)


class TeamNotFound(NotFoundError):
    def __init__(self, team_id: str) -> None:
        super().__init__("team", team_id)


class PlayerAlreadyExists(DomainException):
    def __init__(self, name: str) -> None:
        super().__init__(
            status_code=409,
            title="Player exists",
            detail=f"player name '{name}' already exists",
            code="player_exists",
        )


class TeamAlreadyExists(DomainException):
    def __init__(self, name: str) -> None:
        super().__init__(
            status_code=409,
            title="Team exists",
            detail=f"team name '{name}' already exists",
            code="team_exists",
        )
