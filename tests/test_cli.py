"""Tests for the dpub CLI."""

import tempfile
from pathlib import Path

from click.testing import CliRunner

from dpub.auth.store import IdentityStore
from dpub.cli import main
from dpub.models.article import Article
from dpub.moderation.flags import FlagService
from dpub.moderation.rate_limit import RateLimiter
from dpub.reviews.service import ReviewService
from dpub.store import ADMIN_LOGS, ARTICLES, DocumentStore


def _store(tmpdir):
    return DocumentStore(Path(tmpdir) / "documents")


def _run(tmpdir, *args):
    return CliRunner().invoke(main, ["--data-dir", tmpdir, *args])


def _flagged_article(store):
    store.create(ARTICLES, Article(id="a1", title="Flagged").to_record(), doc_id="a1")
    flags = FlagService(store, RateLimiter())
    flags.flag_article("a1", "u1", "spam")
    flags.flag_article("a1", "u2", "offensive")


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_users_add_and_list():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "users", "add", "ada@example.com", "--role", "reviewer", "--name", "Ada")
        assert result.exit_code == 0, result.output
        assert "Created user" in result.output

        users = IdentityStore(_store(tmpdir)).list_users()
        assert [(u.email, u.role.value) for u in users] == [("ada@example.com", "reviewer")]

        result = _run(tmpdir, "users", "list")
        assert "ada@example.com" in result.output


def test_users_add_rejects_bad_email():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "users", "add", "nope")
        assert result.exit_code == 1
        assert "INVALID_EMAIL" in result.output


def test_users_token():
    with tempfile.TemporaryDirectory() as tmpdir:
        IdentityStore(_store(tmpdir)).create_user("a@example.com", user_id="u1")
        result = _run(tmpdir, "users", "token", "u1")
        assert result.exit_code == 0, result.output
        assert "dpub_" in result.output

        result = _run(tmpdir, "users", "token", "ghost")
        assert result.exit_code == 1
        assert "USER_NOT_FOUND" in result.output


def test_articles_submit_and_show():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(tmpdir, "articles", "submit", "A Paper", "--author", "u1")
        assert result.exit_code == 0, result.output

        docs = _store(tmpdir).query(ARTICLES)
        assert [d["title"] for d in docs] == ["A Paper"]

        result = _run(tmpdir, "articles", "show", docs[0]["id"])
        assert result.exit_code == 0, result.output
        assert "PENDING" in result.output


def test_reviews_status_and_reconcile():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        store.create(ARTICLES, Article(id="a1", title="Paper").to_record(), doc_id="a1")
        reviews = ReviewService(store)
        reviews.submit_review("a1", "r1", 12, "accept")
        reviews.submit_review("a1", "r2", 18, "accept")

        result = _run(tmpdir, "reviews", "status", "a1")
        assert result.exit_code == 0, result.output
        assert "ACCEPTED" in result.output
        assert "3.00" in result.output

        store.update(ARTICLES, "a1", {"status": "pending"})
        result = _run(tmpdir, "reviews", "reconcile")
        assert "Reconciled 1" in result.output
        assert store.get(ARTICLES, "a1")["status"] == "accepted"

        result = _run(tmpdir, "reviews", "reconcile")
        assert "already match" in result.output


def test_moderation_resolve_and_audit():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        IdentityStore(store).create_user("admin@example.com", role="admin", user_id="admin1")
        _flagged_article(store)

        result = _run(tmpdir, "moderation", "queue")
        assert result.exit_code == 0, result.output
        assert "a1" in result.output

        result = _run(tmpdir, "moderation", "resolve", "a1", "reject", "--admin", "admin1", "--notes", "spam")
        assert result.exit_code == 0, result.output
        assert store.get(ARTICLES, "a1")["moderationStatus"] == "removed"
        assert len(store.query(ADMIN_LOGS)) == 1

        result = _run(tmpdir, "audit", "list")
        assert "article_reject" in result.output

        result = _run(tmpdir, "audit", "export", "--format", "csv")
        assert result.exit_code == 0
        assert "id,timestamp,adminId" in result.output


def test_moderation_resolve_requires_admin():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        IdentityStore(store).create_user("rev@example.com", role="reviewer", user_id="rev1")
        _flagged_article(store)

        result = _run(tmpdir, "moderation", "resolve", "a1", "approve", "--admin", "rev1")
        assert result.exit_code == 1
        assert "FORBIDDEN" in result.output
        assert store.get(ARTICLES, "a1")["moderationStatus"] == "under_review"

        result = _run(tmpdir, "moderation", "resolve", "a1", "approve", "--admin", "ghost")
        assert result.exit_code == 1


def test_moderation_pending_and_resume():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        _flagged_article(store)

        result = _run(tmpdir, "moderation", "pending")
        assert "No interrupted resolutions" in result.output

        result = _run(tmpdir, "moderation", "resume", "a1")
        assert result.exit_code == 1
        assert "NO_PENDING_RESOLUTION" in result.output
