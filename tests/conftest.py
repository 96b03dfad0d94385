import pytest

from app import create_app
from tests.utils import APPEND_URL, SHEET_URL, FakeSession


@pytest.fixture
def app():
    app = create_app('testing')
    app.config['RECORD_SOURCE_URL'] = SHEET_URL
    app.config['APPEND_ENDPOINT_URL'] = APPEND_URL
    app.config['RESYNC_DELAY'] = 60
    app.config['ADMIN_PASSWORD'] = 'churchpassword123'
    yield app
    app.extensions['ledger'].scheduler.cancel_scheduled()


@pytest.fixture
def ledger(app):
    ledger = app.extensions['ledger']
    ledger.session = FakeSession()
    return ledger


@pytest.fixture
def client(app, ledger):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    response = client.post('/admin/login', json={'password': 'churchpassword123'})
    assert response.status_code == 200
    return client
