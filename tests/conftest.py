"""Shared test fixtures."""

import copy
import json
import os
import time
import uuid
from datetime import datetime, timezone

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

TEST_CATALOG = {
    "providers": [
        {
            "id": "google",
            "name": "Google Gemini",
            "models": [
                {"id": "gemini-2.5-flash", "name": "Gemini 2.5 Flash"},
                {"id": "gemini-2.5-pro", "name": "Gemini 2.5 Pro", "default": True},
            ],
        }
    ]
}

os.environ["ENVIRONMENT"] = "development"
os.environ["AI_PROVIDERS_CONFIG"] = json.dumps(TEST_CATALOG)
os.environ["GEMINI_API_KEYS"] = "key-a,key-b"
os.environ["KEYCLOAK_URL"] = "http://idp.test"
os.environ["KEYCLOAK_REALM"] = "dragon"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role"

from fastapi.testclient import TestClient  # noqa: E402

from dragon_api.auth import jwks  # noqa: E402
from dragon_api.auth.dependencies import CurrentUser, get_current_user  # noqa: E402
from dragon_api.config.settings import get_settings  # noqa: E402
from dragon_api.llm import catalog, client as llm_client, keys  # noqa: E402
from dragon_api.llm.client import LLMClient  # noqa: E402
from dragon_api.llm.keys import ApiKeyRotator  # noqa: E402
from dragon_api.main import app  # noqa: E402
from dragon_api.sessions import repository  # noqa: E402
from dragon_api.users import repository as users_repository  # noqa: E402

ISSUER = "http://idp.test/realms/dragon"
KID = "test-kid"


@pytest.fixture(autouse=True)
def reset_caches():
    get_settings.cache_clear()
    catalog.get_catalog.cache_clear()
    keys.get_key_rotator.cache_clear()
    jwks.get_key_cache.cache_clear()
    llm_client._clients.clear()
    yield
    app.dependency_overrides.clear()


# --- Persistence ---

class MemorySessionStore:
    """Stands in for the Supabase repository with the same owner-scoped contract."""

    def __init__(self):
        self.rows: dict[str, dict] = {}

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _owned(self, session_id: str, user_id: str) -> dict | None:
        row = self.rows.get(session_id)
        if row is None or row["user_id"] != user_id:
            return None
        return row

    async def create(self, user_id, data):
        now = self._now()
        row = {"id": str(uuid.uuid4()), "user_id": user_id, "messages": [], "created_at": now, "updated_at": now, **data}
        self.rows[row["id"]] = row
        return copy.deepcopy(row)

    async def get_for_owner(self, session_id, user_id):
        row = self._owned(session_id, user_id)
        return copy.deepcopy(row) if row else None

    async def list_for_owner(self, user_id, page=1, per_page=20):
        owned = sorted(
            (r for r in self.rows.values() if r["user_id"] == user_id),
            key=lambda r: r["updated_at"],
            reverse=True,
        )
        start = (page - 1) * per_page
        return [copy.deepcopy(r) for r in owned[start:start + per_page]], len(owned)

    async def update_for_owner(self, session_id, user_id, data):
        row = self._owned(session_id, user_id)
        if row is None:
            return None
        row.update(copy.deepcopy(data))
        row["updated_at"] = self._now()
        return copy.deepcopy(row)

    async def append_message(self, session_id, user_id, message, **fields):
        row = self._owned(session_id, user_id)
        if row is None:
            return None
        row["messages"].append(copy.deepcopy(message))
        return await self.update_for_owner(session_id, user_id, fields)

    async def delete_for_owner(self, session_id, user_id):
        if self._owned(session_id, user_id) is None:
            return False
        del self.rows[session_id]
        return True

    def messages(self, session_id: str) -> list[dict]:
        return self.rows[session_id]["messages"]


@pytest.fixture
def memory_store(monkeypatch):
    store = MemorySessionStore()
    for name in ("create", "get_for_owner", "list_for_owner", "update_for_owner", "append_message", "delete_for_owner"):
        monkeypatch.setattr(repository, name, getattr(store, name))
    return store


class MemoryUserStore:
    """Stands in for the users repository."""

    def __init__(self):
        self.rows: dict[str, dict] = {}

    async def get_by_subject(self, subject):
        row = self.rows.get(subject)
        return copy.deepcopy(row) if row else None

    async def update_by_subject(self, subject, data):
        row = self.rows.get(subject)
        if row is None:
            return None
        row.update(copy.deepcopy(data))
        row["updated_at"] = MemorySessionStore._now()
        return copy.deepcopy(row)

    async def create(self, data):
        now = MemorySessionStore._now()
        row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **copy.deepcopy(data)}
        self.rows[row["keycloak_id"]] = row
        return copy.deepcopy(row)


@pytest.fixture
def user_store(monkeypatch):
    store = MemoryUserStore()
    for name in ("get_by_subject", "update_by_subject", "create"):
        monkeypatch.setattr(users_repository, name, getattr(store, name))
    return store


# --- Upstream model ---

class FakeLLMClient(LLMClient):
    def __init__(self):
        super().__init__(ApiKeyRotator(["fake-key"]))
        self.fragments: list[str] = []
        self.stream_error: Exception | None = None
        self.title = "Friendly Greeting Exchange"
        self.title_error: Exception | None = None
        self.stream_calls: list[dict] = []
        self.generate_calls: list[dict] = []

    async def generate(self, contents, model, system_instruction=None, api_key=None):
        self.generate_calls.append({"contents": contents, "model": model})
        if self.title_error:
            raise self.title_error
        return self.title

    async def generate_stream(self, contents, model, system_instruction=None, api_key=None):
        self.stream_calls.append(
            {"contents": contents, "model": model, "system_instruction": system_instruction, "api_key": api_key}
        )
        for fragment in self.fragments:
            yield fragment
        if self.stream_error:
            raise self.stream_error


@pytest.fixture
def fake_llm(monkeypatch):
    fake = FakeLLMClient()
    fake.fragments = ["Hel", "lo"]
    monkeypatch.setattr("dragon_api.chat.orchestrator.get_llm_client", lambda provider="google": fake)
    monkeypatch.setattr("dragon_api.llm.title.get_llm_client", lambda provider="google": fake)
    return fake


@pytest.fixture
def downloads(monkeypatch):
    """Fake object storage: file id -> bytes; unknown ids fail to download."""
    files: dict[str, bytes] = {}

    async def download(file_id: str) -> bytes:
        if file_id not in files:
            raise FileNotFoundError(file_id)
        return files[file_id]

    monkeypatch.setattr("dragon_api.chat.orchestrator.download_to_buffer", download)
    return files


# --- Identity ---

@pytest.fixture
def user():
    return CurrentUser(id="user-1", email="ada@example.com", display_name="Ada Lovelace")


@pytest.fixture
def client(memory_store, user_store, fake_llm, downloads, user):
    app.dependency_overrides[get_current_user] = lambda: user
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def raw_client(memory_store, user_store, fake_llm, downloads):
    """Client that goes through the real auth dependency."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="session")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def public_jwk(signing_key):
    jwk = json.loads(RSAAlgorithm.to_jwk(signing_key.public_key()))
    jwk.update({"kid": KID, "alg": "RS256", "use": "sig"})
    return jwk


@pytest.fixture
def make_token(signing_key):
    def _make(expires_in: int = 300, issuer: str = ISSUER, key=None, kid: str = KID, **claims) -> str:
        now = int(time.time())
        payload = {
            "sub": "user-1",
            "email": "ada@example.com",
            "given_name": "Ada",
            "family_name": "Lovelace",
            "iss": issuer,
            "iat": now,
            "exp": now + expires_in,
            **claims,
        }
        return jwt.encode(payload, key or signing_key, algorithm="RS256", headers={"kid": kid})

    return _make


@pytest.fixture
def jwks_endpoint(monkeypatch, public_jwk):
    """Serve the test key set without the network; counts fetches."""
    calls = {"count": 0}

    async def fetch():
        calls["count"] += 1
        return [public_jwk]

    monkeypatch.setattr(jwks, "fetch_jwks", fetch)
    return calls


def read_events(response) -> list:
    """Parse an SSE body into JSON payloads, keeping the ``[DONE]`` sentinel as a string."""
    events = []
    for line in response.iter_lines():
        if not line.startswith("data: "):
            continue
        payload = line[len("data: "):]
        events.append(payload if payload == "[DONE]" else json.loads(payload))
    return events
