"""
Signing key loader.

Keys are read once at startup and held as an immutable value for the lifetime
of the process. Any problem with them is fatal: the server refuses to start
rather than issue tokens it cannot verify.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from jose import jwk, jws
from jose.exceptions import JOSEError

from ..core.config import AuthConfig
from ..core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "RS256"
DEFAULT_SESSION_LENGTH = timedelta(weeks=2)


@dataclass(frozen=True)
class SigningKeys:
    """RSA key pair in PEM form."""

    private_key: str
    public_key: str

    def __repr__(self) -> str:
        return "SigningKeys(private_key=<redacted>, public_key=<...>)"


def _read_key(path: str, config_field: str) -> str:
    key_path = Path(path)
    try:
        return key_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(config_field, f"cannot read key file {key_path}", cause=e)


def validate_signing_keys(keys: SigningKeys) -> None:
    """
    Check that both keys parse as RSA keys and belong to the same pair.

    Raises:
        ConfigurationError: If either key is unusable or they do not match
    """
    try:
        jwk.construct(keys.private_key, algorithm=TOKEN_ALGORITHM)
        jwk.construct(keys.public_key, algorithm=TOKEN_ALGORITHM)
    except JOSEError as e:
        raise ConfigurationError("auth", "RSA key could not be parsed", cause=e)

    try:
        probe = jws.sign(b"key-pair-probe", keys.private_key, algorithm=TOKEN_ALGORITHM)
        jws.verify(probe, keys.public_key, algorithms=[TOKEN_ALGORITHM])
    except JOSEError as e:
        raise ConfigurationError("auth", "private and public keys do not form a pair", cause=e)


def load_signing_keys(auth_config: AuthConfig) -> SigningKeys:
    """
    Load and validate the RSA key pair.

    Args:
        auth_config: Auth configuration with key file paths

    Returns:
        Immutable SigningKeys
    """
    keys = SigningKeys(
        private_key=_read_key(auth_config.rsa_private_key_path, "auth.rsa_private_key_path"),
        public_key=_read_key(auth_config.rsa_public_key_path, "auth.rsa_public_key_path")
    )
    validate_signing_keys(keys)
    logger.info("Signing keys loaded")
    return keys


def session_length(auth_config: AuthConfig) -> timedelta:
    """Session length configured for issued tokens."""
    return timedelta(days=auth_config.session_length_days)
