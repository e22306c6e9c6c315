"""Game domain services: the scorekeeping state machine and its save slots.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""

from .errors import GameError, GameFinished, InvalidPlayerName, InvalidScore, NoActivePlayers, NoPlayers
from .machine import GameMachine, Player
from .results import TurnResult
