"""
Tests for the Review Feeds

Covers timeframe resolution, the shared pagination contract and every
feed variant (all, following, search, bookmarked, commented, liked),
through the service layer and the HTTP endpoints.
"""

import math
import uuid
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from reviewhub.exceptions import BadRequestError, NotFoundError
from reviewhub.models import Account, Comment, Follow, ReviewBookmark, ReviewLike
from reviewhub.services import feeds, follows, reactions
from reviewhub.services.feeds import Timeframe, resolve_timeframe
from reviewhub.services.pagination import PageRequest
from reviewhub.services.security import create_access_token


def get_auth_header(account: Account) -> dict:
    """Create authorization header for an account."""
    token = create_access_token({"sub": str(account.id)})
    return {"Authorization": f"Bearer {token}"}


PAGE = PageRequest(page=1, size=10)


# =============================================================================
# Timeframes
# =============================================================================


class TestResolveTimeframe:

    def test_all_is_epoch(self):
        assert resolve_timeframe("all") == datetime(1970, 1, 1, tzinfo=UTC)

    def test_day_is_midnight(self):
        now = datetime(2024, 5, 10, 15, 30, tzinfo=UTC)
        assert resolve_timeframe(Timeframe.DAY, now) == datetime(2024, 5, 10, tzinfo=UTC)

    def test_week_includes_today(self):
        now = datetime(2024, 5, 10, 15, 30, tzinfo=UTC)
        assert resolve_timeframe("7D", now) == datetime(2024, 5, 4, tzinfo=UTC)

    def test_month_clamps_day(self):
        now = datetime(2024, 3, 31, 9, 0, tzinfo=UTC)
        assert resolve_timeframe("1M", now) == datetime(2024, 2, 29, tzinfo=UTC)

    def test_month_across_year(self):
        now = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        assert resolve_timeframe("1M", now) == datetime(2023, 12, 15, tzinfo=UTC)

    def test_year_from_leap_day(self):
        now = datetime(2024, 2, 29, 9, 0, tzinfo=UTC)
        assert resolve_timeframe("1Y", now) == datetime(2023, 2, 28, tzinfo=UTC)

    def test_unknown_timeframe(self):
        with pytest.raises(ValueError):
            resolve_timeframe("2W")


# =============================================================================
# All Reviews
# =============================================================================


class TestListReviews:
    """Tests for feeds.list_reviews"""

    def test_newest_first_with_total_page(self, db_session: Session, make_review, alice):
        created = [make_review(alice) for _ in range(3)]

        first = feeds.list_reviews(db_session, PageRequest(page=1, size=2))
        second = feeds.list_reviews(db_session, PageRequest(page=2, size=2))

        assert first.total_page == 2
        assert [r.id for r in first.reviews] == [created[2].id, created[1].id]
        assert [r.id for r in second.reviews] == [created[0].id]

    def test_empty_feed(self, db_session: Session):
        page = feeds.list_reviews(db_session, PAGE)
        assert page.total_page == 0
        assert page.reviews == []

    def test_page_past_end_is_empty(self, db_session: Session, sample_review):
        page = feeds.list_reviews(db_session, PageRequest(page=5, size=10))
        assert page.total_page == 1
        assert page.reviews == []

    def test_invalid_page_request(self):
        with pytest.raises(BadRequestError):
            PageRequest(page=0, size=10)
        with pytest.raises(BadRequestError):
            PageRequest(page=1, size=0)

    def test_filter_by_author(self, db_session: Session, make_review, alice, bob):
        mine = make_review(alice)
        make_review(bob)

        page = feeds.list_reviews(db_session, PAGE, user_id=alice.id)

        assert [r.id for r in page.reviews] == [mine.id]
        assert page.reviews[0].author.nickname == "alice"

    def test_filter_by_author_set(self, db_session: Session, make_review, alice, bob, carol):
        a = make_review(alice)
        b = make_review(bob)
        make_review(carol)

        page = feeds.list_reviews(db_session, PAGE, user_ids=[alice.id, bob.id])

        assert {r.id for r in page.reviews} == {a.id, b.id}

    def test_unknown_author(self, db_session: Session):
        with pytest.raises(NotFoundError):
            feeds.list_reviews(db_session, PAGE, user_id=uuid.uuid4())

    def test_timeframe_excludes_older(self, db_session: Session, make_review, alice):
        now = datetime.now().astimezone()
        recent = make_review(alice)
        make_review(alice, created_at=(now - timedelta(days=10)).astimezone(UTC))

        day = feeds.list_reviews(db_session, PAGE, timeframe="1D", now=now)
        month = feeds.list_reviews(db_session, PAGE, timeframe="1M", now=now)

        assert [r.id for r in day.reviews] == [recent.id]
        assert len(month.reviews) == 2

    def test_deleted_reviews_hidden(self, db_session: Session, make_review, alice):
        kept = make_review(alice)
        gone = make_review(alice)
        gone.soft_delete()
        db_session.commit()

        page = feeds.list_reviews(db_session, PAGE)

        assert [r.id for r in page.reviews] == [kept.id]
        assert page.total_page == 1

    def test_counts_on_items(self, db_session: Session, sample_review, bob, carol):
        reactions.like_review(db_session, bob.id, sample_review.id)
        reactions.like_review(db_session, carol.id, sample_review.id)
        reactions.dislike_review(db_session, bob.id, sample_review.id)
        reactions.bookmark_review(db_session, carol.id, sample_review.id)
        db_session.add(Comment(review_id=sample_review.id, account_id=bob.id, content="hi"))
        db_session.commit()

        item = feeds.list_reviews(db_session, PAGE).reviews[0]

        assert item.like_count == 2
        assert item.dislike_count == 1
        assert item.bookmark_count == 1
        assert item.comment_count == 1


# =============================================================================
# Following
# =============================================================================


class TestFollowingFeed:
    """Tests for feeds.following_feed"""

    def test_only_followed_authors(self, db_session: Session, make_review, alice, bob, carol):
        db_session.add(Follow(follower_id=alice.id, followee_id=bob.id))
        db_session.commit()
        followed = make_review(bob)
        make_review(carol)
        make_review(alice)

        page = feeds.following_feed(db_session, alice.id, PAGE)

        assert [r.id for r in page.reviews] == [followed.id]
        assert page.total_page == 1

    def test_newest_first_and_paged(self, db_session: Session, make_review, alice, bob):
        db_session.add(Follow(follower_id=alice.id, followee_id=bob.id))
        db_session.commit()
        now = datetime.now(UTC)
        old = make_review(bob, created_at=now - timedelta(days=2))
        new = make_review(bob, created_at=now - timedelta(hours=1))
        middle = make_review(bob, created_at=now - timedelta(days=1))

        first = feeds.following_feed(db_session, alice.id, PageRequest(page=1, size=2))
        second = feeds.following_feed(db_session, alice.id, PageRequest(page=2, size=2))

        assert [r.id for r in first.reviews] == [new.id, middle.id]
        assert [r.id for r in second.reviews] == [old.id]
        assert first.total_page == 2

    def test_no_followings(self, db_session: Session, sample_review, bob):
        page = feeds.following_feed(db_session, bob.id, PAGE)
        assert page.reviews == []
        assert page.total_page == 0

    def test_requires_sign_in(self, client: TestClient):
        response = client.get("/api/v1/reviews/following")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Search
# =============================================================================


class TestSearchFeed:
    """Tests for feeds.search_reviews"""

    def test_matches_title_content_author_and_tag(
        self, db_session: Session, make_review, alice, bob
    ):
        by_title = make_review(alice, title="Spicy Noodles", content="x")
        by_content = make_review(alice, title="Lunch", content="the noodles were cold")
        by_tag = make_review(alice, title="Dinner", content="y", tags=["noodles"])
        make_review(alice, title="Coffee", content="z")

        page = feeds.search_reviews(db_session, "NOODLES", PAGE)

        assert [r.id for r in page.reviews] == [by_tag.id, by_content.id, by_title.id]

    def test_matches_author_nickname(self, db_session: Session, make_review, alice, bob):
        make_review(alice, title="One", content="x")
        bobs = make_review(bob, title="Two", content="y")

        page = feeds.search_reviews(db_session, "bob", PAGE)

        assert [r.id for r in page.reviews] == [bobs.id]

    def test_wildcards_are_literal(self, db_session: Session, make_review, alice):
        discount = make_review(alice, title="50% off", content="x")
        make_review(alice, title="Full price", content="y")

        page = feeds.search_reviews(db_session, "%", PAGE)

        assert [r.id for r in page.reviews] == [discount.id]

    def test_blank_query_rejected(self, db_session: Session):
        with pytest.raises(BadRequestError):
            feeds.search_reviews(db_session, "   ", PAGE)

    def test_search_endpoint(self, client: TestClient, sample_review):
        response = client.get("/api/v1/reviews/search", params={"query": "ramen"})

        assert response.status_code == status.HTTP_200_OK
        assert [r["id"] for r in response.json()["reviews"]] == [sample_review.id]


# =============================================================================
# Per-account feeds
# =============================================================================


class TestBookmarkedFeed:

    def test_most_recent_bookmark_first(self, db_session: Session, make_review, alice, bob):
        first = make_review(alice)
        second = make_review(alice)
        reactions.bookmark_review(db_session, bob.id, second.id)
        reactions.bookmark_review(db_session, bob.id, first.id)

        page = feeds.bookmarked_feed(db_session, bob.id, PAGE)

        assert [r.id for r in page.reviews] == [first.id, second.id]

    def test_endpoint(self, client: TestClient, db_session: Session, sample_review, bob):
        reactions.bookmark_review(db_session, bob.id, sample_review.id)

        response = client.get(f"/api/v1/reviews/users/{bob.id}/bookmarked")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_page"] == 1


class TestCommentedFeed:

    def test_reviews_with_active_comments(self, db_session: Session, make_review, alice, bob):
        commented = make_review(alice)
        uncommented = make_review(alice)
        withdrawn = make_review(alice)
        db_session.add_all([
            Comment(review_id=commented.id, account_id=bob.id, content="one"),
            Comment(review_id=commented.id, account_id=bob.id, content="two"),
            Comment(
                review_id=withdrawn.id,
                account_id=bob.id,
                content="gone",
                deleted_at=datetime.now(UTC),
            ),
            Comment(review_id=uncommented.id, account_id=alice.id, content="mine"),
        ])
        db_session.commit()

        page = feeds.commented_feed(db_session, bob.id, PAGE)

        assert [r.id for r in page.reviews] == [commented.id]
        assert page.total_page == 1

    def test_unknown_account(self, client: TestClient):
        response = client.get(
            "/api/v1/reviews/users/00000000-0000-0000-0000-000000000000/commented"
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestLikedFeed:

    def test_most_recent_like_first(self, db_session: Session, make_review, alice, bob):
        first = make_review(alice)
        second = make_review(alice)
        now = datetime.now(UTC)
        db_session.add_all([
            ReviewLike(review_id=first.id, account_id=bob.id, created_at=now),
            ReviewLike(review_id=second.id, account_id=bob.id, created_at=now - timedelta(hours=3)),
        ])
        db_session.commit()

        page = feeds.liked_feed(db_session, bob.id, PAGE)

        assert [r.id for r in page.reviews] == [first.id, second.id]

    def test_dislikes_are_not_likes(self, db_session: Session, sample_review, bob):
        reactions.dislike_review(db_session, bob.id, sample_review.id)

        page = feeds.liked_feed(db_session, bob.id, PAGE)

        assert page.reviews == []


# =============================================================================
# HTTP
# =============================================================================


class TestListEndpoint:
    """Tests for GET /api/v1/reviews/"""

    def test_list(self, client: TestClient, sample_review):
        response = client.get("/api/v1/reviews/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_page"] == 1
        assert data["reviews"][0]["title"] == "Best ramen in town"
        assert data["reviews"][0]["tags"] == ["food"]

    def test_size_zero_rejected(self, client: TestClient):
        response = client.get("/api/v1/reviews/", params={"size": 0})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_timeframe_rejected(self, client: TestClient):
        response = client.get("/api/v1/reviews/", params={"timeframe": "2W"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_user_ids_filter(self, client: TestClient, make_review, alice, bob, carol):
        make_review(alice)
        make_review(bob)
        make_review(carol)

        response = client.get(
            "/api/v1/reviews/",
            params=[("user_ids", str(alice.id)), ("user_ids", str(bob.id))],
        )

        assert response.status_code == status.HTTP_200_OK
        nicknames = {r["author"]["nickname"] for r in response.json()["reviews"]}
        assert nicknames == {"alice", "bob"}

    def test_overlay_for_signed_in_viewer(
        self, client: TestClient, db_session: Session, sample_review, bob
    ):
        reactions.like_review(db_session, bob.id, sample_review.id)

        anonymous = client.get("/api/v1/reviews/").json()["reviews"][0]
        signed_in = client.get("/api/v1/reviews/", headers=get_auth_header(bob)).json()["reviews"][0]

        assert anonymous["is_my_like"] is False
        assert signed_in["is_my_like"] is True
        assert signed_in["like_count"] == anonymous["like_count"] == 1

    def test_invalid_token_treated_as_anonymous(self, client: TestClient, sample_review):
        response = client.get("/api/v1/reviews/", headers={"Authorization": "Bearer nope"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["reviews"][0]["is_my_like"] is False


# =============================================================================
# Walking every page
# =============================================================================

TIE = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def crowd(db_session: Session, make_account, make_review, alice) -> dict:
    """
    Four authors with two reviews each. Every review, follow, like and
    bookmark shares one created_at, so only the tie-breakers order them.
    """
    authors = [make_account() for _ in range(4)]
    reviews = [make_review(author, created_at=TIE) for author in authors for _ in range(2)]
    reviews.sort(key=lambda r: r.id)
    db_session.add_all([Follow(follower_id=alice.id, followee_id=a.id, created_at=TIE) for a in authors])
    db_session.add_all([Follow(follower_id=a.id, followee_id=alice.id, created_at=TIE) for a in authors])
    db_session.add_all(
        [ReviewLike(review_id=r.id, account_id=alice.id, created_at=TIE) for r in reviews]
    )
    db_session.add_all(
        [ReviewBookmark(review_id=r.id, account_id=alice.id, created_at=TIE) for r in reviews]
    )
    db_session.commit()

    review_ids = [r.id for r in reversed(reviews)]
    author_ids = sorted((a.id for a in authors), reverse=True)
    return {"viewer": alice, "review_ids": review_ids, "author_ids": author_ids}


LISTS = {
    "all": (lambda db, c, p: feeds.list_reviews(db, p), "reviews", "review_ids"),
    "following": (lambda db, c, p: feeds.following_feed(db, c["viewer"].id, p), "reviews", "review_ids"),
    "liked": (lambda db, c, p: feeds.liked_feed(db, c["viewer"].id, p), "reviews", "review_ids"),
    "bookmarked": (lambda db, c, p: feeds.bookmarked_feed(db, c["viewer"].id, p), "reviews", "review_ids"),
    "followings": (lambda db, c, p: follows.get_followings(db, c["viewer"].id, p), "accounts", "author_ids"),
    "followers": (lambda db, c, p: follows.get_followers(db, c["viewer"].id, p), "accounts", "author_ids"),
}


class TestPagingThroughEveryPage:
    """Pages 1..total_page concatenate to the whole ordered list, once each."""

    @pytest.mark.parametrize("size", [1, 3, 8])
    @pytest.mark.parametrize("name", list(LISTS))
    def test_pages_concatenate_to_full_list(self, db_session: Session, crowd, name, size):
        fetch, field, expected_key = LISTS[name]
        expected = crowd[expected_key]

        first = fetch(db_session, crowd, PageRequest(page=1, size=size))
        seen = []
        for number in range(1, first.total_page + 1):
            items = getattr(fetch(db_session, crowd, PageRequest(page=number, size=size)), field)
            assert len(items) <= size
            seen.extend(item.id for item in items)

        assert first.total_page == math.ceil(len(expected) / size)
        assert seen == expected
        past_end = fetch(db_session, crowd, PageRequest(page=first.total_page + 1, size=size))
        assert getattr(past_end, field) == []
