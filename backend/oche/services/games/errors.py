class GameError(Exception):
    """Base class for calls the scorekeeper cannot honour."""


class InvalidPlayerName(GameError, ValueError):
    pass


class InvalidScore(GameError, ValueError):
    pass


class NoPlayers(GameError):
    pass


class NoActivePlayers(GameError):
    """Every player is eliminated, so there is nobody to hand the turn to."""


class GameFinished(GameError):
    pass
