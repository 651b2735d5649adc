"""Tests for users, ID tokens, verifiers and role checks."""

import asyncio
import json
import tempfile

import httpx
import pytest

from dpub.auth.models import Role, User
from dpub.auth.permissions import has_permission, require_role
from dpub.auth.store import IdentityStore
from dpub.auth.tokens import LocalTokenVerifier, RemoteTokenVerifier, build_verifier
from dpub.config import Settings
from dpub.errors import InternalServerError, InvalidTokenError, NotFoundError, PermissionDeniedError, ValidationError
from dpub.store import ID_TOKENS, DocumentStore


def test_role_hierarchy():
    assert Role.admin.level > Role.junior_admin.level > Role.reviewer.level > Role.author.level


def test_has_permission():
    junior = User(id="j", email="j@example.com", role=Role.junior_admin)
    assert has_permission(junior, Role.junior_admin)
    assert has_permission(junior, Role.reviewer)
    assert not has_permission(junior, Role.admin)


def test_require_role_raises_forbidden():
    author = User(id="a", email="a@example.com", role=Role.author)
    with pytest.raises(PermissionDeniedError) as exc_info:
        require_role(author, Role.junior_admin)
    assert exc_info.value.status_code == 403
    assert exc_info.value.code == "FORBIDDEN"


def test_create_user_and_lookup():
    with tempfile.TemporaryDirectory() as tmpdir:
        identity = IdentityStore(DocumentStore(tmpdir))
        user = identity.create_user("Ada@Example.com", role="reviewer", display_name="Ada")
        assert user.role is Role.reviewer
        assert identity.get_user(user.id).email == "Ada@Example.com"
        assert identity.get_user_by_email("ada@example.com").id == user.id
        assert [u.id for u in identity.list_users()] == [user.id]


def test_create_user_validation():
    with tempfile.TemporaryDirectory() as tmpdir:
        identity = IdentityStore(DocumentStore(tmpdir))
        identity.create_user("a@example.com", user_id="u1")

        with pytest.raises(ValidationError) as exc_info:
            identity.create_user("not-an-email")
        assert exc_info.value.code == "INVALID_EMAIL"

        with pytest.raises(ValidationError) as exc_info:
            identity.create_user("A@example.com")
        assert exc_info.value.code == "EMAIL_TAKEN"

        with pytest.raises(ValidationError) as exc_info:
            identity.create_user("b@example.com", user_id="u1")
        assert exc_info.value.code == "USER_EXISTS"


def test_issue_and_verify_token():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(tmpdir)
        identity = IdentityStore(store)
        user = identity.create_user("a@example.com")
        token, raw = identity.issue_id_token(user.id)

        assert identity.verify_id_token(raw).id == user.id
        stored = store.get(ID_TOKENS, token.id)
        assert raw not in json.dumps(stored)
        assert stored["tokenHash"] == token.token_hash


def test_issue_token_for_unknown_user():
    with tempfile.TemporaryDirectory() as tmpdir:
        identity = IdentityStore(DocumentStore(tmpdir))
        with pytest.raises(NotFoundError) as exc_info:
            identity.issue_id_token("ghost")
        assert exc_info.value.code == "USER_NOT_FOUND"


def test_verify_rejects_unknown_and_expired_tokens():
    with tempfile.TemporaryDirectory() as tmpdir:
        identity = IdentityStore(DocumentStore(tmpdir))
        user = identity.create_user("a@example.com")
        _, expired = identity.issue_id_token(user.id, expires_in_hours=-1)

        for raw in ("", "dpub_bogus", expired):
            with pytest.raises(InvalidTokenError) as exc_info:
                identity.verify_id_token(raw)
            assert exc_info.value.code == "INVALID_TOKEN"
            assert exc_info.value.status_code == 401


def test_local_verifier():
    with tempfile.TemporaryDirectory() as tmpdir:
        identity = IdentityStore(DocumentStore(tmpdir))
        user = identity.create_user("a@example.com", role=Role.admin)
        _, raw = identity.issue_id_token(user.id)

        verified = asyncio.run(LocalTokenVerifier(identity).verify_id_token(raw))
        assert verified.id == user.id
        assert verified.role is Role.admin


def _remote(handler):
    return RemoteTokenVerifier("https://idp.example.com/verify", transport=httpx.MockTransport(handler))


def test_remote_verifier_accepts_claims():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"uid": "u1", "email": "u1@example.com", "role": "reviewer", "displayName": "U One"},
        )

    user = asyncio.run(_remote(handler).verify_id_token("tok"))
    assert seen["body"] == {"idToken": "tok"}
    assert user.id == "u1"
    assert user.role is Role.reviewer
    assert user.display_name == "U One"


def test_remote_verifier_defaults_unknown_role_to_author():
    def handler(request):
        return httpx.Response(200, json={"uid": "u1", "role": "superuser"})

    assert asyncio.run(_remote(handler).verify_id_token("tok")).role is Role.author


def test_remote_verifier_rejections():
    def rejecting(request):
        return httpx.Response(401, json={"error": "bad token"})

    def no_uid(request):
        return httpx.Response(200, json={"email": "x@example.com"})

    for handler in (rejecting, no_uid):
        with pytest.raises(InvalidTokenError):
            asyncio.run(_remote(handler).verify_id_token("tok"))


def test_remote_verifier_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(InternalServerError):
        asyncio.run(_remote(handler).verify_id_token("tok"))


def test_build_verifier_picks_by_settings():
    with tempfile.TemporaryDirectory() as tmpdir:
        identity = IdentityStore(DocumentStore(tmpdir))
        assert isinstance(build_verifier(Settings(data_dir=tmpdir), identity), LocalTokenVerifier)
        remote = Settings(data_dir=tmpdir, identity_verify_url="https://idp.example.com/verify")
        assert isinstance(build_verifier(remote, identity), RemoteTokenVerifier)
