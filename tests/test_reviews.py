"""Tests for review submission, review status and reconciliation."""

import tempfile

import pytest

from dpub.articles.service import ArticleService
from dpub.errors import NotFoundError, StateConflictError, ValidationError
from dpub.models.article import Article
from dpub.reviews.models import DisplayStatus
from dpub.reviews.service import ReviewService
from dpub.store import ARTICLES, REVIEWS, DocumentStore


def _setup(tmpdir, status="pending"):
    store = DocumentStore(tmpdir)
    store.create(ARTICLES, Article(id="a1", title="Paper", status=status).to_record(), doc_id="a1")
    return store, ReviewService(store)


def test_two_reviews_with_split_scores_accept():
    with tempfile.TemporaryDirectory() as tmpdir:
        store, reviews = _setup(tmpdir)
        reviews.submit_review("a1", "r1", 4.5, "accept")
        reviews.submit_review("a1", "r2", 2.0, "major_revisions")

        article, summary, view = reviews.review_status("a1")
        assert summary.average_score == pytest.approx(3.25)
        assert summary.review_count == 2
        assert summary.passes_threshold is True
        assert view.status is DisplayStatus.ACCEPTED
        assert article.status == "accepted"
        assert article.review_count == 2


def test_summed_scale_reviews_at_exact_threshold():
    with tempfile.TemporaryDirectory() as tmpdir:
        _, reviews = _setup(tmpdir)
        reviews.submit_review("a1", "r1", 12, "minor_revisions")
        reviews.submit_review("a1", "r2", 18, "accept")

        article, summary, view = reviews.review_status("a1")
        assert summary.average_score == pytest.approx(3.0)
        assert summary.passes_threshold is True
        assert view.status is DisplayStatus.ACCEPTED


def test_failing_reviews_reject_and_write_back():
    with tempfile.TemporaryDirectory() as tmpdir:
        store, reviews = _setup(tmpdir, status="under_review")
        reviews.submit_review("a1", "r1", 1, "reject")
        assert store.get(ARTICLES, "a1")["status"] == "under_review"

        _, summary, view = reviews.review_status("a1")
        assert summary.passes_threshold is False
        assert view.status is DisplayStatus.UNDER_REVIEW
        assert view.progress == pytest.approx(0.5)

        reviews.submit_review("a1", "r2", 2, "reject")
        assert store.get(ARTICLES, "a1")["status"] == "rejected"
        assert reviews.review_status("a1")[2].status is DisplayStatus.REJECTED


def test_reviewer_can_review_once():
    with tempfile.TemporaryDirectory() as tmpdir:
        store, reviews = _setup(tmpdir)
        reviews.submit_review("a1", "r1", 4, "accept")
        with pytest.raises(StateConflictError) as exc_info:
            reviews.submit_review("a1", "r1", 1, "reject")
        assert exc_info.value.code == "ALREADY_REVIEWED"
        assert len(store.query(REVIEWS)) == 1
        assert store.get(ARTICLES, "a1")["reviewCount"] == 1


def test_review_ids_do_not_collide_across_articles():
    with tempfile.TemporaryDirectory() as tmpdir:
        store, reviews = _setup(tmpdir)
        for aid in ("a-b", "a"):
            store.create(ARTICLES, Article(id=aid, title="Other").to_record(), doc_id=aid)

        first = reviews.submit_review("a-b", "c", 4, "accept")
        second = reviews.submit_review("a", "b-c", 2, "reject")

        assert first.id != second.id
        assert [r.reviewer_id for r in reviews.get_reviews("a-b")] == ["c"]
        assert [r.reviewer_id for r in reviews.get_reviews("a")] == ["b-c"]


def test_review_validation():
    with tempfile.TemporaryDirectory() as tmpdir:
        store, reviews = _setup(tmpdir)
        for score in (-1, 26, "4", None, True):
            with pytest.raises(ValidationError) as exc_info:
                reviews.submit_review("a1", "r1", score, "accept")
            assert exc_info.value.code == "INVALID_SCORE"

        with pytest.raises(ValidationError) as exc_info:
            reviews.submit_review("a1", "r1", 4, "maybe")
        assert exc_info.value.code == "INVALID_RECOMMENDATION"

        with pytest.raises(NotFoundError):
            reviews.submit_review("nope", "r1", 4, "accept")
        assert store.query(REVIEWS) == []


def test_removed_article_cannot_be_reviewed():
    with tempfile.TemporaryDirectory() as tmpdir:
        store, reviews = _setup(tmpdir)
        store.update(ARTICLES, "a1", {"moderationStatus": "removed"})
        with pytest.raises(StateConflictError) as exc_info:
            reviews.submit_review("a1", "r1", 4, "accept")
        assert exc_info.value.code == "ARTICLE_ALREADY_REMOVED"


def test_reconcile_all_fixes_drifted_articles():
    with tempfile.TemporaryDirectory() as tmpdir:
        store, reviews = _setup(tmpdir)
        reviews.submit_review("a1", "r1", 5, "accept")
        reviews.submit_review("a1", "r2", 4, "accept")
        # simulate a status written before reconciliation existed
        store.update(ARTICLES, "a1", {"status": "under_review"})
        store.create(ARTICLES, Article(id="a2", title="Untouched").to_record(), doc_id="a2")

        assert reviews.reconcile_all() == {"a1": "accepted"}
        assert store.get(ARTICLES, "a1")["status"] == "accepted"
        assert store.get(ARTICLES, "a2")["status"] == "pending"
        assert reviews.reconcile_all() == {}


def test_article_service_submit_and_list():
    with tempfile.TemporaryDirectory() as tmpdir:
        articles = ArticleService(DocumentStore(tmpdir))
        article = articles.submit("author1", "  A Title  ", "Abstract")
        assert article.title == "A Title"
        assert article.status == "pending"
        assert article.moderation_status == "active"
        assert articles.get(article.id).author_id == "author1"
        assert [a.id for a in articles.list(status="pending")] == [article.id]

        with pytest.raises(ValidationError) as exc_info:
            articles.submit("author1", "   ")
        assert exc_info.value.code == "INVALID_TITLE"
