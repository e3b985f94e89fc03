from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from labsite import create_app
from labsite.models import db, User
from labsite.services.session_gate import session_gate

PASSWORD = 'Secret123!'


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {'UPLOAD_FOLDER': str(tmp_path / 'uploads')})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock(datetime.utcnow())
    monkeypatch.setattr(session_gate, 'clock', fake)
    return fake


@pytest.fixture
def make_user(app):
    def _make_user(email, role='member', password=PASSWORD, **fields):
        user = User(email=email, role=role, password_hash=generate_password_hash(password), **fields)
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def member(make_user):
    return make_user('member@lab.test', 'member', name='Ada', member_type='PhD Candidate')


@pytest.fixture
def other_member(make_user):
    return make_user('other@lab.test', 'member', name='Bob')


@pytest.fixture
def director(make_user):
    return make_user('director@lab.test', 'director', name='Dana')


@pytest.fixture
def admin(make_user):
    return make_user('admin@lab.test', 'admin', name='Root')


def _login(client, email, password=PASSWORD, remember_me=False):
    return client.post('/login', json={'email': email, 'password': password, 'remember_me': remember_me})


@pytest.fixture
def member_client(app, member):
    client = app.test_client()
    _login(client, member.email)
    return client


@pytest.fixture
def director_client(app, director):
    client = app.test_client()
    _login(client, director.email)
    return client


@pytest.fixture
def admin_client(app, admin):
    client = app.test_client()
    _login(client, admin.email)
    return client


@pytest.fixture
def publication_data():
    return {
        'type': 'Journal Paper',
        'title': 'X',
        'publishing_year': 2024,
        'authors': ['A', 'B'],
        'link': 'https://example.com',
    }


@pytest.fixture
def login():
    return _login
