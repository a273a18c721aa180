from arena.models import GameRecord, Player
from arena.services.match.sink import SinkError
from arena.socketio_events import SocketHandle

NS = '/ws'


def _received(sio_client):
    return [
        (pkt['name'], pkt['args'][0] if pkt['args'] else None)
        for pkt in sio_client.get_received(NS)
    ]


def _payloads(events, name):
    return [payload for event, payload in events if event == name]


def _join(sio_factory, username):
    """Connect and authenticate; returns (client, session id)."""
    sio_client = sio_factory()
    assert sio_client.is_connected(NS)
    session_id = _payloads(_received(sio_client), 'connected')[0]['sessionId']
    sio_client.emit('authenticate', {'username': username}, namespace=NS)
    return sio_client, session_id


def _pair(sio_factory):
    alice, alice_id = _join(sio_factory, 'alice')
    bob, bob_id = _join(sio_factory, 'bob')
    _received(alice)
    _received(bob)
    alice.emit('start_matchmaking', {}, namespace=NS)
    bob.emit('start_matchmaking', {}, namespace=NS)
    return alice, alice_id, bob, bob_id


def _move(sio_client, match_id, cell):
    sio_client.emit('make_move', {'matchId': match_id, 'cellIndex': cell}, namespace=NS)


def test_authenticate_sends_leaderboard(sio_factory):
    alice, _ = _join(sio_factory, 'alice')
    updates = _payloads(_received(alice), 'leaderboard_update')
    assert updates == [{'entries': []}]
    assert Player.query.filter_by(username='alice').count() == 1


def test_two_players_are_matched(sio_factory):
    alice, alice_id, bob, bob_id = _pair(sio_factory)

    alice_found = _payloads(_received(alice), 'match_found')
    bob_found = _payloads(_received(bob), 'match_found')
    assert len(alice_found) == len(bob_found) == 1
    assert alice_found[0]['matchId'] == bob_found[0]['matchId']
    assert alice_found[0]['playerSymbol'] == 'X'
    assert bob_found[0]['playerSymbol'] == 'O'
    assert alice_found[0]['opponentId'] == bob_id
    assert bob_found[0]['opponentId'] == alice_id


def test_x_wins_and_stats_are_recorded(sio_factory):
    alice, _, bob, _ = _pair(sio_factory)
    match_id = _payloads(_received(alice), 'match_found')[0]['matchId']
    _received(bob)

    for sio_client, cell in ((alice, 0), (bob, 3), (alice, 1), (bob, 4)):
        _move(sio_client, match_id, cell)
    updates = _payloads(_received(bob), 'game_update')
    assert updates[-1] == {
        'board': ['X', 'X', None, 'O', 'O', None, None, None, None],
        'currentTurn': 'X',
    }
    _received(alice)

    _move(alice, match_id, 2)
    final_board = ['X', 'X', 'X', 'O', 'O', None, None, None, None]
    for sio_client in (alice, bob):
        events = _received(sio_client)
        assert _payloads(events, 'game_end') == [{'winner': 'X', 'board': final_board}]
        entries = _payloads(events, 'leaderboard_update')[0]['entries']
        assert entries == [
            {'username': 'alice', 'wins': 1, 'losses': 0, 'rank': 1},
            {'username': 'bob', 'wins': 0, 'losses': 1, 'rank': 2},
        ]

    alice_row = Player.query.filter_by(username='alice').first()
    bob_row = Player.query.filter_by(username='bob').first()
    assert (alice_row.wins, alice_row.losses, alice_row.games_played) == (1, 0, 1)
    assert (bob_row.wins, bob_row.losses, bob_row.games_played) == (0, 1, 1)

    record = GameRecord.query.filter_by(match_id=match_id).one()
    assert record.winner == 'X'
    assert record.moves_count == 5
    assert record.to_dict()['board'] == final_board


def test_draw_records_draw_for_both(sio_factory):
    alice, _, bob, _ = _pair(sio_factory)
    match_id = _payloads(_received(alice), 'match_found')[0]['matchId']

    players = (alice, bob)
    for i, cell in enumerate([0, 1, 2, 4, 3, 5, 7, 6, 8]):
        _move(players[i % 2], match_id, cell)

    assert _payloads(_received(bob), 'game_end')[0]['winner'] == 'draw'
    for name in ('alice', 'bob'):
        row = Player.query.filter_by(username=name).first()
        assert (row.draws, row.games_played) == (1, 1)


def test_disconnect_mid_match(flask_app, sio_factory):
    alice, _, bob, _ = _pair(sio_factory)
    match_id = _payloads(_received(alice), 'match_found')[0]['matchId']

    bob.disconnect(namespace=NS)
    assert _payloads(_received(alice), 'opponent_disconnected') == [{}]

    engine = flask_app.extensions['match_engine']
    assert match_id not in engine.matches

    _move(alice, match_id, 4)
    assert _payloads(_received(alice), 'game_update') == []
    assert engine.stats() == {'sessions': 1, 'matches': 0, 'queue': 0}


def test_leave_match_notifies_opponent(flask_app, sio_factory):
    alice, _, bob, _ = _pair(sio_factory)
    match_id = _payloads(_received(alice), 'match_found')[0]['matchId']
    _received(bob)

    alice.emit('leave_match', {'matchId': match_id}, namespace=NS)
    assert _payloads(_received(bob), 'opponent_left') == [{}]
    assert flask_app.extensions['match_engine'].matches == {}

    # both can queue again
    alice.emit('start_matchmaking', {}, namespace=NS)
    bob.emit('start_matchmaking', {}, namespace=NS)
    assert len(_payloads(_received(alice), 'match_found')) == 1


def test_matchmaking_before_authenticate_is_refused(sio_factory):
    sio_client = sio_factory()
    _received(sio_client)
    sio_client.emit('start_matchmaking', {}, namespace=NS)
    assert _payloads(_received(sio_client), 'error') == [{'message': 'Not authenticated'}]


def test_malformed_payload_gets_error_and_connection_survives(sio_factory):
    alice, _ = _join(sio_factory, 'alice')
    _received(alice)

    alice.emit('make_move', {'matchId': 'match_x', 'cellIndex': 'centre'}, namespace=NS)
    assert _payloads(_received(alice), 'error') == [{'message': 'cellIndex must be an integer'}]

    alice.emit('launch_rockets', {'now': True}, namespace=NS)
    assert _payloads(_received(alice), 'error') == [{'message': 'Unknown command: launch_rockets'}]

    assert alice.is_connected(NS)
    alice.emit('get_leaderboard', namespace=NS)
    assert _payloads(_received(alice), 'leaderboard_update') == [{'entries': []}]


def test_get_leaderboard_while_store_is_down(flask_app, sio_factory, monkeypatch):
    alice, _ = _join(sio_factory, 'alice')
    _received(alice)

    def unavailable(limit):
        raise SinkError('database is locked')

    monkeypatch.setattr(flask_app.extensions['match_engine'].sink, 'top_rankings', unavailable)
    alice.emit('get_leaderboard', namespace=NS)
    assert _payloads(_received(alice), 'leaderboard_update') == [{'entries': []}]
    assert alice.is_connected(NS)


def test_session_handle_addresses_the_connection(flask_app, sio_factory):
    alice, alice_id = _join(sio_factory, 'alice')
    session = flask_app.extensions['match_engine'].registry.lookup(alice_id)
    assert session.handle == SocketHandle(alice_id, NS)
