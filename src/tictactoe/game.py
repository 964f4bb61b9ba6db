"""Core rules for a single 3x3 tic-tac-toe game."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"

EMPTY = " "

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def other_player(player: Player) -> Player:
    return "O" if player == "X" else "X"


# ---------- Errors ----------


class MoveError(ValueError):
    """Base class for moves the game refuses to register."""


class CellOccupied(MoveError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Cell {index} is already occupied")
        self.index = index


class GameInactive(MoveError):
    def __init__(self) -> None:
        super().__init__("Game already finished")


class WrongTurn(MoveError):
    def __init__(self, player: Player) -> None:
        super().__init__(f"It is not player {player}'s turn")
        self.player = player


# ---------- Win/draw evaluation ----------


@dataclass(frozen=True)
class GameStatus:
    """Outcome of a position: in progress, won (with the line) or drawn."""

    winner: Optional[Player] = None
    drawn: bool = False
    line: Optional[Tuple[int, int, int]] = None

    @property
    def in_progress(self) -> bool:
        return self.winner is None and not self.drawn

    @property
    def label(self) -> str:
        if self.winner:
            return "won"
        if self.drawn:
            return "draw"
        return "in_progress"


IN_PROGRESS = GameStatus()


def winning_line(cells: Sequence[str]) -> Optional[Tuple[int, int, int]]:
    """Return the first complete line in table order, if any."""
    for a, b, c in WINNING_LINES:
        v = cells[a]
        if v != EMPTY and v == cells[b] == cells[c]:
            return (a, b, c)
    return None


def evaluate(cells: Sequence[str]) -> GameStatus:
    """Classify any 9-cell board, including hypothetical ones built by search."""
    line = winning_line(cells)
    if line is not None:
        return GameStatus(winner=cells[line[0]], line=line)
    if EMPTY not in cells:
        return GameStatus(drawn=True)
    return IN_PROGRESS


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    # 'X', 'O', or ' ' (space) for empty
    cells: List[str] = field(default_factory=lambda: [EMPTY] * 9)
    current_player: Player = "X"
    status: GameStatus = IN_PROGRESS

    @property
    def is_active(self) -> bool:
        return self.status.in_progress

    @property
    def winner(self) -> Optional[Player]:
        return self.status.winner

    @property
    def drawn(self) -> bool:
        return self.status.drawn

    def snapshot(self) -> Tuple[str, ...]:
        """Read-only copy of the cells for rendering."""
        return tuple(self.cells)

    def available_moves(self) -> List[int]:
        if not self.is_active:
            return []
        return [i for i, c in enumerate(self.cells) if c == EMPTY]

    def play_move(self, index: int, player: Optional[Player] = None) -> None:
        """Place a mark for ``player`` (default: whoever is to move).

        Raises ``GameInactive`` after a win or draw, ``CellOccupied`` for a
        taken cell and ``WrongTurn`` when ``player`` is not the one to move.
        A refused move leaves the game untouched.
        """
        if not self.is_active:
            raise GameInactive()
        if not 0 <= index < len(self.cells):
            raise ValueError(f"Cell index {index} is out of range")
        if player is not None and player != self.current_player:
            raise WrongTurn(player)
        if self.cells[index] != EMPTY:
            raise CellOccupied(index)

        self.cells[index] = self.current_player
        self.status = evaluate(self.cells)
        # The finishing player stays current so the banner can name them
        if self.status.in_progress:
            self.current_player = other_player(self.current_player)

    def reset(self) -> None:
        self.cells = [EMPTY] * 9
        self.current_player = "X"
        self.status = IN_PROGRESS

    def clone(self) -> "TicTacToeGame":
        return TicTacToeGame(
            cells=self.cells.copy(),
            current_player=self.current_player,
            status=self.status,
        )
