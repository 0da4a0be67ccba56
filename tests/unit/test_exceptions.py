"""
Test suite for the error taxonomy.
"""

import pytest

from conduit.core.exceptions import (
    ConfigurationError, CredentialFormatError, ForbiddenError, InternalError,
    InvariantViolationError, NotFoundError, UnauthorizedError,
    UnprocessableEntityError, opaque_error_body
)


@pytest.mark.parametrize("error, status_code", [
    (UnauthorizedError(), 401),
    (ForbiddenError(), 403),
    (NotFoundError(), 404),
    (UnprocessableEntityError.single("email", "email taken"), 422),
    (InternalError("boom"), 500),
    (CredentialFormatError(), 500),
    (InvariantViolationError("impossible"), 500),
])
def test_status_codes(error, status_code):
    assert error.status_code == status_code


def test_unprocessable_entity_body():
    error = UnprocessableEntityError({"username": ["username taken"], "email": ["email taken"]})

    assert error.to_dict() == {"errors": {"username": ["username taken"], "email": ["email taken"]}}


def test_internal_errors_are_opaque():
    error = InvariantViolationError("row 42 mutated without existing", context={"slug": "r1"})

    assert error.to_dict() == opaque_error_body()
    assert "42" not in str(error.to_dict())


def test_client_error_body():
    assert NotFoundError("Article not found").to_dict() == {
        "error": "NOT_FOUND",
        "message": "Article not found"
    }


def test_cause_is_kept():
    cause = ValueError("bad hash")
    error = CredentialFormatError(cause=cause)

    assert error.cause is cause
    assert error.error_code == "CREDENTIAL_FORMAT_ERROR"


def test_configuration_error_context():
    error = ConfigurationError("auth.rsa_public_key_path", "cannot read key file")

    assert error.context["config_field"] == "auth.rsa_public_key_path"
    assert "auth.rsa_public_key_path" in error.message
