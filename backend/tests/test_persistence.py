from oche import db
from oche.models import SaveSlot
from oche.services.games import GameMachine
from oche.services.games.persistence import MemorySlotStore, SqlSlotStore


def make_game(store, *names):
    machine = GameMachine(store=store)
    for name in names:
        machine.add_player(name)
    return machine


def test_snapshot_uses_seat_indices():
    machine = make_game(MemorySlotStore(), 'A', 'B', 'C')
    machine.submit_score(301)
    snap = machine.to_snapshot()
    assert [p['name'] for p in snap['players']] == ['A', 'B', 'C']
    assert snap['players'][0]['totalScore'] == 301
    assert snap['players'][0]['rounds'] == [301]
    state = snap['currentState']
    assert state['currentPlayerIndex'] == 1
    assert state['currentRound'] == 1
    assert state['targetScore'] == 301
    assert state['redemptionMode'] is True
    assert state['redemptionPlayers'] == [1, 2]
    assert state['initialWinners'] == [0]
    assert state['winner'] == -1
    assert state['gameOver'] is False


def test_resume_in_the_middle_of_redemption():
    store = MemorySlotStore()
    machine = make_game(store, 'A', 'B', 'C')
    machine.submit_score(301)
    machine.submit_score(301)

    resumed = GameMachine(store=store)
    assert resumed.load()
    assert resumed.redemption_mode
    assert resumed.current_player.name == 'C'
    assert [p.name for p in resumed.redemption_players] == ['B', 'C']
    result = resumed.submit_score(7)
    assert result.winners == ['A', 'B']
    assert resumed.target_score == 401


def test_resume_finished_game_keeps_winner():
    store = MemorySlotStore()
    machine = make_game(store, 'A', 'B')
    machine.submit_score(301)
    machine.submit_score(3)

    resumed = GameMachine(store=store)
    resumed.load()
    assert resumed.game_over
    assert resumed.winner.name == 'A'


def test_load_without_save_returns_false():
    machine = GameMachine(store=MemorySlotStore())
    assert machine.load() is False
    assert GameMachine().load() is False


def test_malformed_references_degrade_to_empty():
    machine = GameMachine()
    applied = machine.restore({
        'players': [
            {'name': 'A', 'totalScore': 120, 'rounds': [60, 60]},
            {'name': 'B', 'totalScore': 'lots', 'rounds': 'nope'},
            {'name': '   '},
            'garbage',
        ],
        'currentState': {
            'currentPlayerIndex': 9,
            'currentRound': 0,
            'targetScore': 301,
            'redemptionMode': True,
            'redemptionPlayers': [5, 'x'],
            'initialWinner': 7,
            'winner': 3,
        },
    })
    assert applied
    assert [p.name for p in machine.players] == ['A', 'B']
    assert machine.players[1].total_score == 0
    assert machine.players[1].rounds == []
    assert machine.current_player_index == 0
    assert machine.current_round == 1
    assert machine.redemption_mode is False
    assert machine.redemption_player_ids == []
    assert machine.initial_winner_ids == []
    assert machine.winner is None


def test_legacy_single_initial_winner_index():
    machine = GameMachine()
    machine.restore({
        'players': [{'name': 'A', 'totalScore': 301}, {'name': 'B'}],
        'currentState': {
            'currentPlayerIndex': 1,
            'redemptionMode': True,
            'redemptionPlayers': [1],
            'initialWinner': 0,
            'winner': -1,
        },
    })
    assert [p.name for p in machine.initial_winners] == ['A']
    assert machine.current_player.name == 'B'
    result = machine.submit_score(0)
    assert result.game_over is True
    assert machine.winner.name == 'A'


def test_players_missing_or_duplicate_ids_get_fresh_ones():
    machine = GameMachine()
    machine.restore({'players': [{'id': 4, 'name': 'A'}, {'id': 4, 'name': 'B'}, {'name': 'C'}]})
    ids = [p.id for p in machine.players]
    assert ids[0] == 4
    assert len(set(ids)) == 3
    newcomer = machine.add_player('D')
    assert newcomer.id not in ids


def test_non_dict_snapshot_is_ignored():
    machine = GameMachine()
    machine.add_player('A')
    assert machine.restore(['not', 'a', 'snapshot']) is False
    assert [p.name for p in machine.players] == ['A']


def test_memory_store_hands_back_copies():
    store = MemorySlotStore()
    store.write('slot', {'players': []})
    first = store.read('slot')
    first['players'].append('x')
    assert store.read('slot') == {'players': []}
    store.clear('slot')
    assert store.read('slot') is None


def test_sql_store_round_trip(flask_app):
    store = SqlSlotStore()
    assert store.read('dartsGame') is None
    machine = make_game(store, 'A', 'B')
    machine.submit_score(45)
    assert SaveSlot.query.count() == 1

    resumed = GameMachine(store=store)
    assert resumed.load()
    assert [p.name for p in resumed.players] == ['A', 'B']
    assert resumed.players[0].rounds == [45]
    assert resumed.current_player.name == 'B'

    store.clear('dartsGame')
    assert store.read('dartsGame') is None


def test_sql_store_corrupt_payload_reads_as_empty(flask_app):
    db.session.add(SaveSlot(slot='dartsGame', payload='{not json'))
    db.session.commit()
    machine = GameMachine(store=SqlSlotStore())
    assert machine.load() is False
    assert machine.players == []
