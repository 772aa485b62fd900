from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class _Model(BaseModel):
    # Persisted JSON keeps the camelCase layout of the browser's localStorage value.
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Player(_Model):
    id: int = Field(..., ge=1, le=2)
    name: str

    # Presentation tags; carried through for the UI, ignored by game logic.
    icon_class: str = Field("", alias="iconClass")
    color_class: str = Field("", alias="colorClass")


class Move(_Model):
    player: Player
    square_id: int = Field(..., ge=1, le=9, alias="squareId")


class GameStatus(_Model):
    is_complete: bool = Field(..., alias="isComplete")

    # None on a completed game means a tie.
    winner: Player | None = None


def _check_move_log(moves: tuple[Move, ...]) -> None:
    seen: set[int] = set()
    for idx, move in enumerate(moves):
        if move.square_id in seen:
            raise ValueError(f"square {move.square_id} played twice")
        seen.add(move.square_id)

        # Player 1 always opens, then strict alternation.
        expected_id = 1 if idx % 2 == 0 else 2
        if move.player.id != expected_id:
            raise ValueError(f"move {idx} belongs to player {expected_id}, not player {move.player.id}")


class CompletedGame(_Model):
    moves: tuple[Move, ...] = Field(default_factory=tuple, max_length=9)
    status: GameStatus

    @model_validator(mode="after")
    def _check_archived(self) -> CompletedGame:
        if not self.status.is_complete:
            raise ValueError("only completed games can be archived")
        _check_move_log(self.moves)
        return self


class GameHistory(_Model):
    current_round_games: tuple[CompletedGame, ...] = Field(default_factory=tuple, alias="currentRoundGames")
    all_games: tuple[CompletedGame, ...] = Field(default_factory=tuple, alias="allGames")


class GameState(_Model):
    """The only persisted aggregate. Everything else is derived from it."""

    current_game_moves: tuple[Move, ...] = Field(default_factory=tuple, max_length=9, alias="currentGameMoves")
    history: GameHistory = Field(default_factory=GameHistory)

    @model_validator(mode="after")
    def _check_current_moves(self) -> GameState:
        _check_move_log(self.current_game_moves)
        return self


class CurrentGame(_Model):
    moves: tuple[Move, ...]
    current_player: Player = Field(..., alias="currentPlayer")
    next_player: Player = Field(..., alias="nextPlayer")
    status: GameStatus


class PlayerStats(Player):
    wins: int = 0


class GameStats(_Model):
    players_with_stats: tuple[PlayerStats, ...] = Field(..., alias="playersWithStats")
    ties: int = 0

    @computed_field(alias="winsByPlayer")  # type: ignore[prop-decorator]
    @property
    def wins_by_player(self) -> dict[int, int]:
        return {p.id: p.wins for p in self.players_with_stats}


class MoveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    square_id: int = Field(..., ge=1, le=9, alias="squareId")
