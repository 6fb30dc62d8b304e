import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import datetime

import pytest
import requests

from camrent import create_app, db
from camrent.api import auth_provider
from camrent.models import Equipment, Order, UserProfile


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


class FakeProvider:
    def __init__(self, user=None, error=None, confirm_email=False):
        self.user = user or {'id': 'u-1', 'email': 'mira@example.com',
                             'user_metadata': {'name': 'Mira'}}
        self.error = error
        self.confirm_email = confirm_email
        self.signed_out = []

    def sign_in(self, email, password):
        if self.error:
            raise self.error
        return {'access_token': 'tok', 'user': self.user}

    def sign_up(self, email, password, name):
        if self.error:
            raise self.error
        user = dict(self.user, email=email, user_metadata={'name': name})
        if self.confirm_email:
            return {'user': user}
        return {'access_token': 'tok', 'user': user}

    def sign_out(self, token):
        self.signed_out.append(token)


def use_provider(monkeypatch, provider):
    monkeypatch.setattr(auth_provider, 'get_client', lambda: provider)


def test_login_creates_profile_lazily(monkeypatch):
    app = setup_app()
    use_provider(monkeypatch, FakeProvider())
    client = app.test_client()

    resp = client.post('/auth/login', json={'email': 'mira@example.com', 'password': 'pw'})
    data = resp.get_json()
    assert resp.status_code == 200
    assert data['profile'] == {'id': 'u-1', 'name': 'Mira',
                               'email': 'mira@example.com', 'role': 'customer'}
    assert data['is_authenticated'] is True
    assert data['is_admin'] is False

    # second sign-in reuses the existing row
    client.post('/auth/login', json={'email': 'mira@example.com', 'password': 'pw'})
    with app.app_context():
        assert UserProfile.query.count() == 1


def test_profile_name_falls_back_to_email(monkeypatch):
    app = setup_app()
    use_provider(monkeypatch, FakeProvider(user={'id': 'u-2', 'email': 'sam@example.com'}))
    data = app.test_client().post(
        '/auth/login', json={'email': 'sam@example.com', 'password': 'pw'}).get_json()
    assert data['profile']['name'] == 'sam'


def test_admin_role_unlocks_dashboard(monkeypatch):
    app = setup_app()
    with app.app_context():
        db.session.add(UserProfile(id='u-1', name='Mira', email='mira@example.com', role='admin'))
        db.session.commit()
    use_provider(monkeypatch, FakeProvider())
    client = app.test_client()
    assert client.get('/admin/').status_code == 401
    data = client.post('/auth/login', json={'email': 'mira@example.com', 'password': 'pw'}).get_json()
    assert data['is_admin'] is True and data['is_staff'] is True
    assert client.get('/admin/').status_code == 200


def test_bad_credentials(monkeypatch):
    app = setup_app()
    use_provider(monkeypatch, FakeProvider(
        error=auth_provider.AuthProviderError('Invalid login credentials', 400)))
    client = app.test_client()
    resp = client.post('/auth/login', json={'email': 'x@example.com', 'password': 'nope'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid login credentials'
    assert client.get('/auth/me').get_json()['is_authenticated'] is False
    assert client.post('/auth/login', json={'email': 'x@example.com'}).status_code == 400


def test_provider_outage_is_502(monkeypatch):
    app = setup_app()
    use_provider(monkeypatch, FakeProvider(
        error=auth_provider.AuthProviderError('Auth service unavailable')))
    resp = app.test_client().post('/auth/login', json={'email': 'a@b.c', 'password': 'pw'})
    assert resp.status_code == 502


def test_signup_uses_given_name(monkeypatch):
    app = setup_app()
    use_provider(monkeypatch, FakeProvider())
    data = app.test_client().post('/auth/signup', json={
        'email': 'mira@example.com', 'password': 'pw', 'name': 'Mira K'}).get_json()
    assert data['profile']['name'] == 'Mira K'


def test_unconfirmed_signup_does_not_sign_in(monkeypatch):
    app = setup_app()
    with app.app_context():
        db.session.add(Order(customer_name='Victim', customer_email='victim@example.com',
                             customer_phone='555', duration='24hr',
                             rent_date=datetime(2024, 1, 1, 9),
                             return_date=datetime(2024, 1, 2, 9), total_cost=300.0))
        db.session.commit()
    use_provider(monkeypatch, FakeProvider(user={'id': 'u-x'}, confirm_email=True))
    client = app.test_client()

    resp = client.post('/auth/signup', json={
        'email': 'victim@example.com', 'password': 'pw', 'name': 'Not Victim'})
    assert resp.status_code == 202
    assert resp.get_json() == {'message': 'Check your email to confirm'}
    assert client.get('/auth/me').get_json()['is_authenticated'] is False
    assert client.get('/orders/mine').status_code == 401
    with app.app_context():
        assert UserProfile.query.count() == 0


def test_non_object_body_is_rejected():
    app = setup_app()
    resp = app.test_client().post('/auth/login', json=[1])
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Request body must be a JSON object'


def test_login_and_logout_keep_cart(monkeypatch):
    app = setup_app()
    provider = FakeProvider()
    use_provider(monkeypatch, provider)
    with app.app_context():
        eq = Equipment(name='A7', category='Mirrorless', rate_12hr=100, rate_24hr=200)
        db.session.add(eq)
        db.session.commit()
        eid = eq.id
    client = app.test_client()
    client.post('/cart/add', json={'equipment_id': eid, 'duration': '12h'})
    client.post('/auth/login', json={'email': 'mira@example.com', 'password': 'pw'})
    assert client.get('/cart').get_json()['item_count'] == 1

    assert client.post('/auth/logout').get_json()['success'] is True
    assert provider.signed_out == ['tok']
    assert client.get('/auth/me').get_json()['user'] is None
    assert client.get('/cart').get_json()['item_count'] == 1


def test_my_orders_requires_login(monkeypatch):
    app = setup_app()
    client = app.test_client()
    assert client.get('/orders/mine').status_code == 401
    use_provider(monkeypatch, FakeProvider())
    client.post('/auth/login', json={'email': 'mira@example.com', 'password': 'pw'})
    assert client.get('/orders/mine').get_json() == {'orders': []}


class DummyResponse:
    def __init__(self, status_code, data=None):
        self.status_code = status_code
        self._data = data
        self.content = b'' if data is None else b'{}'

    def json(self):
        if self._data is None:
            raise ValueError('no body')
        return self._data


def test_client_sign_in_request(monkeypatch):
    client = auth_provider.AuthProviderClient('https://auth.test/auth/v1/', 'anon', timeout=5)
    calls = []

    def fake_post(url, json=None, params=None, headers=None, timeout=None):
        calls.append((url, json, params, timeout))
        return DummyResponse(200, {'access_token': 't', 'user': {'id': 'u'}})

    monkeypatch.setattr(client.session, 'post', fake_post)
    data = client.sign_in('a@b.c', 'pw')
    assert data['user']['id'] == 'u'
    assert calls == [('https://auth.test/auth/v1/token', {'email': 'a@b.c', 'password': 'pw'},
                      {'grant_type': 'password'}, 5)]
    assert client.session.headers['apikey'] == 'anon'


def test_client_sign_up_unwraps_bare_user(monkeypatch):
    client = auth_provider.AuthProviderClient('https://auth.test', 'anon')
    monkeypatch.setattr(client.session, 'post',
                        lambda *a, **kw: DummyResponse(200, {'id': 'u9', 'email': 'n@x.y'}))
    assert client.sign_up('n@x.y', 'pw', 'N') == {'user': {'id': 'u9', 'email': 'n@x.y'}}


def test_client_errors(monkeypatch):
    client = auth_provider.AuthProviderClient('https://auth.test', 'anon')
    monkeypatch.setattr(client.session, 'post', lambda *a, **kw: DummyResponse(
        400, {'error_description': 'Invalid login credentials'}))
    with pytest.raises(auth_provider.AuthProviderError) as exc:
        client.sign_in('a@b.c', 'bad')
    assert exc.value.status == 400
    assert str(exc.value) == 'Invalid login credentials'

    def boom(*a, **kw):
        raise requests.ConnectionError('down')

    monkeypatch.setattr(client.session, 'post', boom)
    with pytest.raises(auth_provider.AuthProviderError) as exc:
        client.sign_out('tok')
    assert exc.value.status is None
