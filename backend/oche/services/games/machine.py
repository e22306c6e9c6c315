"""Score and turn-order state machine for a game of 301 with redemption and overtime.

Rules in brief:

- Each turn adds the submitted score to the current player's total. A score
  that would take the total past the target is a bust: it is discarded and
  the turn moves on.
- Reaching the target exactly does not win outright. Every other active
  player still short of the target gets one redemption turn to tie.
- When the redemption lap is over, a single player at target wins. Two or
  more tied players go to overtime: everyone else is eliminated, the target
  goes up by the overtime increment and the tied players each get a fresh
  redemption-style lap toward it.

The machine holds no I/O of its own. Each mutating call ends by writing a
snapshot to the injected slot store, so a restarted process resumes the game
with `load()`.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import GameFinished, InvalidPlayerName, InvalidScore, NoActivePlayers, NoPlayers
from .results import BUST_MESSAGE, TurnResult

logger = logging.getLogger(__name__)

DEFAULT_TARGET = 301
DEFAULT_OVERTIME_INCREMENT = 100
DEFAULT_SLOT = 'dartsGame'


@dataclass
class Player:
    id: int
    name: str
    total_score: int = 0
    rounds: List[int] = field(default_factory=list)
    is_eliminated: bool = False

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'total_score': self.total_score,
            'rounds': list(self.rounds),
            'is_eliminated': self.is_eliminated,
        }


def _as_int(value, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


class GameMachine:
    def __init__(self, store=None, slot: str = DEFAULT_SLOT,
                 target_score: int = DEFAULT_TARGET,
                 overtime_increment: int = DEFAULT_OVERTIME_INCREMENT):
        self.store = store
        self.slot = slot
        self.original_target = target_score
        self.overtime_increment = overtime_increment
        self.players: List[Player] = []
        self._next_player_id = 1
        self._clear_state()

    @classmethod
    def from_config(cls, config, store=None) -> 'GameMachine':
        return cls(
            store=store,
            slot=config.get('SAVE_SLOT', DEFAULT_SLOT),
            target_score=int(config.get('TARGET_SCORE', DEFAULT_TARGET)),
            overtime_increment=int(config.get('OVERTIME_INCREMENT', DEFAULT_OVERTIME_INCREMENT)),
        )

    def _clear_state(self) -> None:
        self.current_player_index = 0
        self.current_round = 1
        self.target_score = self.original_target
        self.game_over = False
        self.redemption_mode = False
        self.redemption_player_ids: List[int] = []
        self.redemption_index = 0
        self.initial_winner_ids: List[int] = []
        self.winner_id: Optional[int] = None

    # ---- Lookups ----

    def player_by_id(self, player_id) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def _index_of(self, player_id) -> Optional[int]:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        return None

    def _players_for(self, ids) -> List[Player]:
        found = (self.player_by_id(pid) for pid in ids)
        return [p for p in found if p is not None]

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def winner(self) -> Optional[Player]:
        return self.player_by_id(self.winner_id) if self.winner_id is not None else None

    @property
    def initial_winners(self) -> List[Player]:
        return self._players_for(self.initial_winner_ids)

    @property
    def redemption_players(self) -> List[Player]:
        return self._players_for(self.redemption_player_ids)

    @property
    def active_players(self) -> List[Player]:
        return [p for p in self.players if not p.is_eliminated]

    @property
    def has_started(self) -> bool:
        return (
            any(p.rounds for p in self.players)
            or self.current_player_index != 0
            or self.current_round > 1
            or self.target_score != self.original_target
            or self.redemption_mode
            or self.game_over
        )

    def is_at_target(self, player: Player) -> bool:
        return player.total_score == self.target_score

    # ---- Operations ----

    def add_player(self, name) -> Player:
        if not isinstance(name, str) or not name.strip():
            raise InvalidPlayerName('Player name is required')
        player = Player(id=self._next_player_id, name=name.strip())
        self._next_player_id += 1
        self.players.append(player)
        logger.info(f"[add-player] id={player.id} name={player.name!r} seat={len(self.players) - 1}")
        self.save()
        return player

    def submit_score(self, score) -> TurnResult:
        """Apply one turn's score for the player on the clock.

        Busts, redemption and overtime are ordinary results. Exceptions are
        reserved for calls that should never have been made: a malformed
        score, an empty roster, a finished game, or a roster with nobody
        left active.
        """
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise InvalidScore('Score must be a non-negative integer')
        if not self.players:
            raise NoPlayers('No players in game')
        if self.game_over:
            raise GameFinished('Game is already over')

        result = TurnResult()
        player = self.current_player
        if player is None or player.is_eliminated:
            if not self.active_players:
                raise NoActivePlayers('No active players remain')
            self.save()
            return result

        new_total = player.total_score + score
        if new_total > self.target_score:
            logger.info(
                f"[bust] player={player.name!r} score={score} total={player.total_score} target={self.target_score}"
            )
            result.bust = True
            result.message = BUST_MESSAGE
            self._advance_turn(result)
            self.save()
            return result

        player.total_score = new_total
        player.rounds.append(score)

        if new_total == self.target_score:
            if not self.redemption_mode:
                self._start_redemption(player, result)
                self.save()
                return result
            result.add_message(f"{player.name} hit {self.target_score}!")
            logger.info(f"[redemption-hit] player={player.name!r} target={self.target_score}")

        self._advance_turn(result)
        self.save()
        return result

    def reset_game(self, keep_players: bool) -> None:
        if keep_players:
            for p in self.players:
                p.total_score = 0
                p.rounds = []
                p.is_eliminated = False
        else:
            self.players = []
            self._next_player_id = 1
        self._clear_state()
        logger.info(f"[reset] keep_players={bool(keep_players)} players={len(self.players)}")
        self.save()

    # ---- Transitions ----

    def _advance_turn(self, result: TurnResult) -> None:
        if self.redemption_mode:
            self._advance_redemption(result)
        else:
            self._move_to_next_player()

    def _start_redemption(self, scorer: Player, result: TurnResult) -> None:
        winners = [scorer.id] + [
            p.id for p in self.players
            if p.id != scorer.id and not p.is_eliminated and self.is_at_target(p)
        ]
        pending = [p.id for p in self.players if not p.is_eliminated and not self.is_at_target(p)]
        self.initial_winner_ids = winners

        if not pending:
            logger.info(f"[redemption-skip] winners={winners} nobody left to tie")
            self._resolve(winners, result)
            return

        self.redemption_mode = True
        self.redemption_player_ids = pending
        self.redemption_index = 0
        self.current_player_index = self._index_of(pending[0])
        result.add_message(f"{scorer.name} hit {self.target_score}! Redemption round starts")
        result.redemption = True
        logger.info(f"[redemption-start] winner={scorer.name!r} target={self.target_score} pending={pending}")

    def _advance_redemption(self, result: TurnResult) -> None:
        self.redemption_index += 1
        while self.redemption_index < len(self.redemption_player_ids):
            idx = self._index_of(self.redemption_player_ids[self.redemption_index])
            if idx is not None:
                self.current_player_index = idx
                return
            self.redemption_index += 1

        self.redemption_mode = False
        self.redemption_player_ids = []
        self.redemption_index = 0
        self._resolve(self._collect_winners(), result)

    def _collect_winners(self) -> List[int]:
        winners = [pid for pid in self.initial_winner_ids if self.player_by_id(pid) is not None]
        for p in self.players:
            if p.id not in winners and not p.is_eliminated and self.is_at_target(p):
                winners.append(p.id)
        return winners

    def _resolve(self, winner_ids: List[int], result: TurnResult) -> None:
        if len(winner_ids) > 1:
            self._start_overtime(winner_ids, result)
        elif len(winner_ids) == 1:
            self._declare_winner(winner_ids[0], result)
        else:
            # Only an overtime lap can end with nobody at the raised target.
            self.initial_winner_ids = []
            logger.info(f"[redemption-end] nobody reached {self.target_score}; play continues")
            self._move_to_next_player()

    def _start_overtime(self, winner_ids: List[int], result: TurnResult) -> None:
        previous_target = self.target_score
        self.target_score += self.overtime_increment
        self.current_round = 1

        tied = set(winner_ids)
        for p in self.players:
            p.is_eliminated = p.id not in tied

        seeded = [p.id for p in self.players if not p.is_eliminated]
        self.initial_winner_ids = []
        self.redemption_mode = True
        self.redemption_player_ids = seeded
        self.redemption_index = 0
        self.current_player_index = self._index_of(seeded[0])

        names = [p.name for p in self._players_for(winner_ids)]
        result.add_message(f"OVERTIME! New target: {self.target_score}")
        result.winners = names
        result.redemption = True
        result.game_over = False
        logger.info(f"[overtime] winners={names} target {previous_target} -> {self.target_score}")

    def _declare_winner(self, player_id: int, result: TurnResult) -> None:
        winner = self.player_by_id(player_id)
        self.game_over = True
        self.winner_id = player_id
        self.redemption_mode = False
        self.redemption_player_ids = []
        self.redemption_index = 0
        result.add_message(f"🏆 {winner.name} wins! 🏆")
        result.game_over = True
        logger.info(f"[winner] player={winner.name!r} target={self.target_score} round={self.current_round}")

    def _move_to_next_player(self) -> None:
        count = len(self.players)
        if count == 0:
            raise NoPlayers('No players in game')
        start = self.current_player_index
        for step in range(1, count + 1):
            idx = (start + step) % count
            if not self.players[idx].is_eliminated:
                if idx <= start:
                    self.current_round += 1
                self.current_player_index = idx
                return
        raise NoActivePlayers('No active players remain')

    # ---- Persistence ----

    def save(self) -> None:
        if self.store is None:
            return
        self.store.write(self.slot, self.to_snapshot())

    def load(self) -> bool:
        if self.store is None:
            return False
        data = self.store.read(self.slot)
        if data is None:
            return False
        return self.restore(data)

    def to_snapshot(self) -> dict:
        """Serialize to the save-slot format; player references become seat indices."""
        seat: Dict[int, int] = {p.id: i for i, p in enumerate(self.players)}
        winner = seat.get(self.winner_id, -1) if self.winner_id is not None else -1
        return {
            'players': [
                {
                    'id': p.id,
                    'name': p.name,
                    'totalScore': p.total_score,
                    'rounds': list(p.rounds),
                    'isEliminated': p.is_eliminated,
                }
                for p in self.players
            ],
            'currentState': {
                'currentPlayerIndex': self.current_player_index,
                'currentRound': self.current_round,
                'targetScore': self.target_score,
                'originalTarget': self.original_target,
                'gameOver': self.game_over,
                'redemptionMode': self.redemption_mode,
                'redemptionPlayers': [seat[pid] for pid in self.redemption_player_ids if pid in seat],
                'redemptionIndex': self.redemption_index,
                'initialWinners': [seat[pid] for pid in self.initial_winner_ids if pid in seat],
                'winner': winner,
                'nextPlayerId': self._next_player_id,
            },
        }

    def restore(self, data) -> bool:
        """Load state from a snapshot dict.

        Anything malformed degrades to an empty/default value instead of
        failing: unknown seat indices are dropped, a bad winner index means
        no winner, players missing an id get a fresh one.
        """
        if not isinstance(data, dict):
            logger.warning(f"[load] ignoring snapshot of type {type(data).__name__}")
            return False

        raw_players = data.get('players')
        players: List[Player] = []
        for raw in raw_players if isinstance(raw_players, list) else []:
            if not isinstance(raw, dict):
                continue
            name = str(raw.get('name') or '').strip()
            if not name:
                continue
            rounds = raw.get('rounds')
            players.append(Player(
                id=_as_int(raw.get('id'), 0),
                name=name,
                total_score=max(0, _as_int(raw.get('totalScore'), 0)),
                rounds=[r for r in rounds if _as_int(r, -1) >= 0] if isinstance(rounds, list) else [],
                is_eliminated=bool(raw.get('isEliminated', False)),
            ))

        seen = set()
        next_id = max([p.id for p in players if p.id > 0], default=0) + 1
        for p in players:
            if p.id <= 0 or p.id in seen:
                p.id = next_id
                next_id += 1
            seen.add(p.id)

        state = data.get('currentState')
        if not isinstance(state, dict):
            state = {}

        def seat_id(value) -> Optional[int]:
            idx = _as_int(value, -1)
            return players[idx].id if 0 <= idx < len(players) else None

        def seat_ids(values) -> List[int]:
            if not isinstance(values, list):
                values = [values]
            ids = []
            for v in values:
                pid = seat_id(v)
                if pid is not None and pid not in ids:
                    ids.append(pid)
            return ids

        self.players = players
        self._next_player_id = max(next_id, _as_int(state.get('nextPlayerId'), 0))
        original = _as_int(state.get('originalTarget'), self.original_target)
        self.original_target = original if original > 0 else self.original_target
        target = _as_int(state.get('targetScore'), self.original_target)
        self.target_score = target if target > 0 else self.original_target
        self.current_round = max(1, _as_int(state.get('currentRound'), 1))
        self.game_over = bool(state.get('gameOver', False))

        index = _as_int(state.get('currentPlayerIndex'), 0)
        self.current_player_index = index if 0 <= index < len(players) else 0

        if 'initialWinners' in state:
            self.initial_winner_ids = seat_ids(state.get('initialWinners'))
        else:
            self.initial_winner_ids = seat_ids(state.get('initialWinner', -1))
        self.winner_id = seat_id(state.get('winner', -1))

        self.redemption_player_ids = seat_ids(state.get('redemptionPlayers', []))
        self.redemption_index = max(0, _as_int(state.get('redemptionIndex'), 0))
        self.redemption_mode = bool(state.get('redemptionMode', False))
        if self.redemption_mode and self.redemption_index >= len(self.redemption_player_ids):
            self.redemption_mode = False
        if self.redemption_mode:
            self.current_player_index = self._index_of(self.redemption_player_ids[self.redemption_index])
        else:
            self.redemption_player_ids = []
            self.redemption_index = 0

        logger.info(
            f"[load] players={len(players)} round={self.current_round} target={self.target_score} "
            f"redemption={self.redemption_mode} game_over={self.game_over}"
        )
        return True

    def to_dict(self) -> dict:
        """State payload for the view layer."""
        current = self.current_player
        winner = self.winner
        players = []
        for p in self.players:
            pd = p.to_dict()
            pd['at_target'] = self.is_at_target(p)
            players.append(pd)
        return {
            'players': players,
            'current_player_index': self.current_player_index,
            'current_player': current.to_dict() if current else None,
            'current_round': self.current_round,
            'target_score': self.target_score,
            'original_target': self.original_target,
            'game_over': self.game_over,
            'winner': winner.to_dict() if winner else None,
            'redemption_mode': self.redemption_mode,
            'redemption_player_ids': list(self.redemption_player_ids),
            'initial_winner_ids': list(self.initial_winner_ids),
            'has_started': self.has_started,
        }
