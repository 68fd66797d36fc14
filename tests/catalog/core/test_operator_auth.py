"""Unit tests for operator tokens."""

from datetime import timedelta
from uuid import uuid4

from jose import jwt

from catalog.config import settings
from catalog.core.auth import create_operator_token, decode_operator_token


def test__token__round_trips_operator():
    operator_id = uuid4()

    operator = decode_operator_token(create_operator_token(operator_id, email="ops@example.com"))

    assert operator is not None
    assert operator.id == operator_id
    assert operator.email == "ops@example.com"


def test__expired_token__is_rejected():
    token = create_operator_token(uuid4(), expires_delta=timedelta(seconds=-1))

    assert decode_operator_token(token) is None


def test__token_signed_with_other_key__is_rejected():
    token = jwt.encode({"sub": str(uuid4())}, "another-key", algorithm=settings.algorithm)

    assert decode_operator_token(token) is None


def test__token_without_uuid_subject__is_rejected():
    token = jwt.encode({"sub": "not-a-uuid"}, settings.secret_key, algorithm=settings.algorithm)

    assert decode_operator_token(token) is None
