import shutil

import pytest
from fastapi.testclient import TestClient

from didvc.config import Settings
from didvc.credentials import CredentialEngine
from didvc.did import DIDResolver
from didvc.keys import KeyManager
from didvc.server import create_app
from didvc.store.crud import CredentialStore

BASE_URL = "http://localhost:3000"
SELF_DID = "did:web:localhost%3A3000"


@pytest.fixture(scope="session")
def generated_key_dir(tmp_path_factory):
    """A key directory populated once per session; RSA generation is slow."""
    key_dir = tmp_path_factory.mktemp("session-keys")
    KeyManager(key_dir).initialize()
    return key_dir


@pytest.fixture
def key_dir(generated_key_dir, tmp_path):
    """A private copy of the session key pair."""
    target = tmp_path / "keys"
    shutil.copytree(generated_key_dir, target)
    return target


@pytest.fixture
def key_manager(key_dir):
    manager = KeyManager(key_dir)
    manager.initialize()
    return manager


@pytest.fixture
def resolver(key_manager):
    return DIDResolver(key_manager, BASE_URL)


@pytest.fixture
def store():
    return CredentialStore.from_url("sqlite://")


@pytest.fixture
def engine(key_manager, resolver, store):
    return CredentialEngine(key_manager, resolver, store)


@pytest.fixture
def app_settings(key_dir):
    return Settings(base_url=BASE_URL, key_dir=key_dir, database_url="sqlite://", log_format="text")


@pytest.fixture
def client(app_settings):
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client
