from urllib.parse import urlparse, parse_qs

from labsite.models import UserSession
from labsite.services.session_gate import (
    session_gate,
    STATE_AUTHENTICATED,
    STATE_LOGGED_OUT,
    STATE_UNKNOWN,
    END_IDLE,
    END_LOGOUT,
)


def _location(response):
    return urlparse(response.headers['Location'])


def test_unknown_token_is_not_authenticated(app):
    assert session_gate.resolve(None).state == STATE_UNKNOWN
    assert session_gate.resolve('no-such-session').state == STATE_LOGGED_OUT


def test_open_session_resolves_until_idle(app, clock, member):
    user_session = session_gate.open(member)

    clock.advance(minutes=9, seconds=59)
    result = session_gate.resolve(user_session.session_id)
    assert result.state == STATE_AUTHENTICATED
    assert result.user_session.user.email == member.email

    clock.advance(seconds=1)
    result = session_gate.resolve(user_session.session_id)
    assert result.state == STATE_LOGGED_OUT
    assert result.reason == END_IDLE
    assert user_session.end_reason == END_IDLE
    assert user_session.ended_at == clock.now


def test_touch_restarts_idle_window(app, clock, member):
    user_session = session_gate.open(member)
    clock.advance(minutes=8)
    session_gate.touch(user_session)
    clock.advance(minutes=8)
    assert session_gate.resolve(user_session.session_id).state == STATE_AUTHENTICATED


def test_remember_me_uses_long_timeout(app, clock, member):
    user_session = session_gate.open(member, remember_me=True)
    clock.advance(days=1)
    assert session_gate.resolve(user_session.session_id).state == STATE_AUTHENTICATED
    clock.advance(days=30)
    assert session_gate.resolve(user_session.session_id).state == STATE_LOGGED_OUT


def test_closed_session_stays_logged_out(app, member):
    user_session = session_gate.open(member)
    session_gate.close(user_session.session_id)
    result = session_gate.resolve(user_session.session_id)
    assert result.state == STATE_LOGGED_OUT
    assert result.reason == END_LOGOUT


def test_login_sets_identity(app, member, login):
    client = app.test_client()
    response = login(client, member.email)
    assert response.status_code == 200
    assert response.get_json() == {'success': True, 'role': 'member', 'redirect': '/member_dashboard'}

    with client.session_transaction() as sess:
        assert sess['email'] == member.email
        assert UserSession.query.filter_by(session_id=sess['session_id']).one().user_id == member.id
        assert 'last_activity' in sess


def test_login_rejects_bad_password(app, member, login):
    client = app.test_client()
    response = login(client, member.email, password='wrong')
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid email or password'
    assert client.get('/api/check-auth').get_json() == {'authenticated': False, 'role': None}


def test_form_login_redirects_to_role_landing_page(app, director):
    client = app.test_client()
    response = client.post('/login', data={'email': director.email, 'password': 'Secret123!'})
    assert response.status_code == 302
    assert _location(response).path == '/director_dashboard'


def test_check_auth_reports_role(member_client):
    assert member_client.get('/api/check-auth').get_json() == {'authenticated': True, 'role': 'member'}


def test_idle_session_is_cleared_and_redirected(clock, member_client):
    assert member_client.get('/member_dashboard').status_code == 200

    clock.advance(minutes=11)
    response = member_client.get('/member_dashboard')

    assert response.status_code == 302
    location = _location(response)
    assert location.path == '/login'
    assert parse_qs(location.query) == {'sessionExpired': ['true']}
    with member_client.session_transaction() as sess:
        assert 'email' not in sess
        assert 'session_id' not in sess
        assert 'last_activity' not in sess
    assert UserSession.query.one().end_reason == END_IDLE


def test_idle_api_call_gets_401(clock, member_client):
    clock.advance(minutes=10)
    response = member_client.get('/api/member/publications')
    assert response.status_code == 401
    assert response.get_json() == {'authenticated': False, 'message': 'Session expired'}


def test_check_auth_does_not_count_as_activity(clock, member_client):
    clock.advance(minutes=6)
    assert member_client.get('/api/check-auth').get_json()['authenticated'] is True
    clock.advance(minutes=4)
    assert member_client.get('/api/check-auth').get_json()['authenticated'] is False


def test_activity_heartbeat_keeps_session_alive(clock, member_client):
    clock.advance(minutes=9)
    response = member_client.post('/api/activity')
    assert response.get_json()['success'] is True
    clock.advance(minutes=9)
    assert member_client.get('/api/check-auth').get_json()['authenticated'] is True


def test_guarded_page_counts_as_activity(clock, member_client):
    clock.advance(minutes=9)
    member_client.get('/member_dashboard')
    clock.advance(minutes=9)
    assert member_client.get('/member_dashboard').status_code == 200


def test_remember_me_login_survives_idle_window(app, clock, member, login):
    client = app.test_client()
    login(client, member.email, remember_me=True)
    clock.advance(hours=5)
    assert client.get('/api/check-auth').get_json()['authenticated'] is True


def test_logout_ends_server_session(member_client):
    response = member_client.get('/logout')
    assert response.status_code == 302
    assert _location(response).path == '/login'
    assert UserSession.query.one().end_reason == END_LOGOUT
    assert member_client.get('/api/check-auth').get_json()['authenticated'] is False


def test_replayed_cookie_after_logout_is_denied(member_client):
    with member_client.session_transaction() as sess:
        stolen = dict(sess)
    member_client.get('/logout')
    with member_client.session_transaction() as sess:
        sess.update(stolen)
    assert member_client.get('/api/member/publications').status_code == 401


def test_remember_me_cookie_outlives_the_browser(app, member, login):
    remembered = login(app.test_client(), member.email, remember_me=True)
    assert 'Expires=' in ' '.join(remembered.headers.getlist('Set-Cookie'))

    plain = login(app.test_client(), member.email)
    assert 'Expires=' not in ' '.join(plain.headers.getlist('Set-Cookie'))
