"""Test configuration and fixtures."""

import uuid
import json
import pytest
from pathlib import Path
from datetime import datetime, timezone
from typing import Callable, Dict, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient

from conduit.api.app import create_app
from conduit.auth.config import SigningKeys
from conduit.auth.jwt_handler import JWTHandler
from conduit.auth.password import CredentialHasher
from conduit.core.config import AppConfig, AuthConfig, DatabaseConfig, PasswordHashConfig
from conduit.core.database import Database, format_timestamp

# Cheap Argon2 parameters; production parameters take ~50ms per hash.
FAST_HASH_PARAMS = {"time_cost": 1, "memory_cost": 8192, "parallelism": 1, "max_workers": 2}


def _generate_key_pair() -> Tuple[str, str]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    ).decode("ascii")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode("ascii")
    return private_pem, public_pem


@pytest.fixture(scope="session")
def rsa_key_pair() -> Tuple[str, str]:
    """RSA key pair (private PEM, public PEM) shared by the whole run."""
    return _generate_key_pair()


@pytest.fixture(scope="session")
def foreign_key_pair() -> Tuple[str, str]:
    """A second, unrelated RSA key pair."""
    return _generate_key_pair()


@pytest.fixture
def signing_keys(rsa_key_pair) -> SigningKeys:
    private_pem, public_pem = rsa_key_pair
    return SigningKeys(private_key=private_pem, public_key=public_pem)


@pytest.fixture
def key_files(tmp_path, rsa_key_pair) -> Tuple[Path, Path]:
    """Write the shared key pair to PEM files."""
    private_pem, public_pem = rsa_key_pair
    private_path = tmp_path / "private_key.pem"
    public_path = tmp_path / "public_key.pem"
    private_path.write_text(private_pem, encoding="utf-8")
    public_path.write_text(public_pem, encoding="utf-8")
    return private_path, public_path


@pytest.fixture
def jwt_handler(signing_keys) -> JWTHandler:
    return JWTHandler(signing_keys)


@pytest.fixture
def fast_hasher():
    """Credential hasher with cheap parameters."""
    hasher = CredentialHasher(**FAST_HASH_PARAMS)
    yield hasher
    hasher.shutdown()


@pytest.fixture
def database(tmp_path) -> Database:
    """File-backed database with the schema applied."""
    db = Database(str(tmp_path / "conduit.db"))
    db.init_schema()
    return db


@pytest.fixture
def make_user(database) -> Callable[..., uuid.UUID]:
    """Insert a user row directly and return its id."""
    def _make_user(username: str) -> uuid.UUID:
        user_id = uuid.uuid4()
        with database.transaction() as conn:
            conn.execute(
                'insert into "user" (user_id, username, email, password_hash, created_at) '
                'values (?, ?, ?, ?, ?)',
                (str(user_id), username, f"{username}@example.com", "unused",
                 format_timestamp(datetime.now(timezone.utc)))
            )
        return user_id
    return _make_user


@pytest.fixture
def make_article(database) -> Callable[..., str]:
    """Insert an article row directly and return its slug."""
    def _make_article(owner: uuid.UUID, slug: str) -> str:
        now = format_timestamp(datetime.now(timezone.utc))
        with database.transaction() as conn:
            conn.execute(
                'insert into article (article_id, user_id, slug, title, description, body, tag_list, '
                'created_at, updated_at) values (?, ?, ?, ?, ?, ?, ?, ?, ?)',
                (str(uuid.uuid4()), str(owner), slug, slug, "description", "body",
                 json.dumps([]), now, now)
            )
        return slug
    return _make_article


@pytest.fixture
def app_config(tmp_path, key_files) -> AppConfig:
    """Application config pointing at temporary files."""
    private_path, public_path = key_files
    return AppConfig(
        environment="testing",
        database=DatabaseConfig(path=str(tmp_path / "app.db")),
        auth=AuthConfig(
            rsa_private_key_path=str(private_path),
            rsa_public_key_path=str(public_path)
        ),
        password=PasswordHashConfig(**FAST_HASH_PARAMS)
    )


@pytest.fixture
def app(app_config):
    return create_app(app_config)


@pytest.fixture
def client(app):
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client) -> Callable[..., Dict[str, str]]:
    """Register an account over the API and return its user body."""
    def _register(username: str, password: str = "password123") -> Dict[str, str]:
        response = client.post("/api/users", json={
            "user": {"username": username, "email": f"{username}@example.com", "password": password}
        })
        assert response.status_code == 200, response.text
        return response.json()["user"]
    return _register


@pytest.fixture
def auth_headers() -> Callable[[Dict[str, str]], Dict[str, str]]:
    """Build the Authorization header for a registered user; the token carries its own scheme."""
    def _auth_headers(user: Dict[str, str]) -> Dict[str, str]:
        return {"Authorization": user["token"]}
    return _auth_headers
