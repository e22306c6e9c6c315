def _ensure_connected(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')


def test_socket_connect_and_join(sio_client):
    _ensure_connected(sio_client)
    sio_client.emit('join_board', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'joined' in names
    joined = next(pkt for pkt in received if pkt['name'] == 'joined')
    assert joined['args'][0]['room'] == 'board:dartsGame'


def test_request_state(sio_client, client):
    client.post('/api/game/players', json={'name': 'Alice'})
    _ensure_connected(sio_client)
    sio_client.get_received('/ws')  # flush
    sio_client.emit('request_state', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    state = next(pkt for pkt in received if pkt['name'] == 'state')['args'][0]
    assert [p['name'] for p in state['players']] == ['Alice']


def test_score_pushes_state_update(sio_client, client):
    _ensure_connected(sio_client)
    sio_client.emit('join_board', {'slot': 'dartsGame'}, namespace='/ws')
    client.post('/api/game/players', json={'name': 'Alice'})
    client.post('/api/game/players', json={'name': 'Bob'})
    sio_client.get_received('/ws')  # flush

    client.post('/api/game/score', json={'score': 40})
    events = sio_client.get_received('/ws')
    updates = [e for e in events if e['name'] == 'state_update']
    assert updates
    assert updates[0]['args'][0] == {'slot': 'dartsGame'}


def test_ping(sio_client):
    _ensure_connected(sio_client)
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)
