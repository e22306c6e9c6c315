from dataclasses import dataclass, field
from typing import List, Optional

BUST_MESSAGE = 'BUST! Score reset'


@dataclass
class TurnResult:
    """Outcome of one submitted score, as handed back to the view layer.

    Only the fields relevant to the transition taken are populated; the rest
    stay at their empty defaults and are left out of `to_dict()`.
    """
    bust: bool = False
    message: str = ''
    redemption: bool = False
    winners: List[str] = field(default_factory=list)
    game_over: Optional[bool] = None

    def add_message(self, text: str) -> None:
        self.message = f"{self.message} {text}" if self.message else text

    def to_dict(self) -> dict:
        out = {}
        if self.bust:
            out['bust'] = True
        if self.message:
            out['message'] = self.message
        if self.redemption:
            out['redemption'] = True
        if self.winners:
            out['winners'] = list(self.winners)
        if self.game_over is not None:
            out['gameOver'] = self.game_over
        return out
