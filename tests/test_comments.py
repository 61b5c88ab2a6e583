"""
Tests for Comments

Tests the comment endpoints:
- List comments of a review (newest first, active only)
- Create a comment or reply, optionally tagging accounts
- Get, update and delete a comment (author only)

Business Rules:
- A comment notifies the review author once, never the commenter
- Every tagged account gets a COMMENT_TAG notification
- A reply's parent must be an active comment of the same review
"""

import json
import uuid

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from reviewhub.models import Account, Comment, Notification, NotificationType, Review
from reviewhub.services.security import create_access_token


def get_auth_header(account: Account) -> dict:
    """Create authorization header for an account."""
    token = create_access_token({"sub": str(account.id)})
    return {"Authorization": f"Bearer {token}"}


def post_comment(client: TestClient, review: Review, account: Account, **body):
    return client.post(
        f"/api/v1/reviews/{review.id}/comments",
        json={"content": "Nice review", **body},
        headers=get_auth_header(account),
    )


def published_events(fake_redis) -> list[dict]:
    return [json.loads(message)["data"] for _, message in fake_redis.published]


# =============================================================================
# Create
# =============================================================================


class TestCreateComment:
    """Tests for POST /api/v1/reviews/{review_id}/comments"""

    def test_create_comment(self, client: TestClient, sample_review: Review, bob: Account):
        response = post_comment(client, sample_review, bob)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["content"] == "Nice review"
        assert data["review_id"] == sample_review.id
        assert data["parent_id"] is None
        assert data["author"]["nickname"] == "bob"
        assert data["tagged_accounts"] == []

    def test_notifies_review_author_once(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        alice: Account,
        bob: Account,
        fake_redis,
    ):
        comment_id = post_comment(client, sample_review, bob).json()["id"]

        notifications = db_session.execute(select(Notification)).scalars().all()
        assert len(notifications) == 1
        assert notifications[0].type == NotificationType.REVIEW_COMMENT
        assert notifications[0].recipient_id == alice.id

        events = published_events(fake_redis)
        assert len(events) == 1
        assert events[0] == {
            "senderIdx": str(bob.id),
            "recipientIdx": str(alice.id),
            "type": int(NotificationType.REVIEW_COMMENT),
            "reviewIdx": sample_review.id,
            "commentIdx": comment_id,
        }

    def test_own_review_no_notification(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        alice: Account,
        fake_redis,
    ):
        response = post_comment(client, sample_review, alice)

        assert response.status_code == status.HTTP_201_CREATED
        assert db_session.execute(select(Notification)).scalars().all() == []
        assert fake_redis.published == []

    def test_tagged_accounts_notified(
        self,
        client: TestClient,
        sample_review: Review,
        bob: Account,
        carol: Account,
        fake_redis,
    ):
        response = post_comment(
            client,
            sample_review,
            bob,
            tagged_account_ids=[str(carol.id), str(carol.id)],
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert [a["nickname"] for a in response.json()["tagged_accounts"]] == ["carol"]

        events = published_events(fake_redis)
        assert sorted(e["type"] for e in events) == [
            int(NotificationType.REVIEW_COMMENT),
            int(NotificationType.COMMENT_TAG),
        ]
        tag_event = next(e for e in events if e["type"] == NotificationType.COMMENT_TAG)
        assert tag_event["recipientIdx"] == str(carol.id)

    def test_tagging_unknown_account(self, client: TestClient, sample_review: Review, bob: Account):
        response = post_comment(client, sample_review, bob, tagged_account_ids=[str(uuid.uuid4())])
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_reply(self, client: TestClient, sample_review: Review, alice: Account, bob: Account):
        parent_id = post_comment(client, sample_review, bob).json()["id"]

        response = post_comment(client, sample_review, alice, content="Thanks!", parent_id=parent_id)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["parent_id"] == parent_id

    def test_reply_to_comment_on_other_review(
        self, client: TestClient, make_review, alice: Account, bob: Account
    ):
        first = make_review(alice)
        second = make_review(alice)
        parent_id = post_comment(client, first, bob).json()["id"]

        response = post_comment(client, second, bob, parent_id=parent_id)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_reply_to_missing_parent(self, client: TestClient, sample_review: Review, bob: Account):
        response = post_comment(client, sample_review, bob, parent_id=99999)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_comment_on_deleted_review(
        self, client: TestClient, db_session: Session, sample_review: Review, bob: Account
    ):
        sample_review.soft_delete()
        db_session.commit()

        response = post_comment(client, sample_review, bob)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_blank_comment(self, client: TestClient, sample_review: Review, bob: Account):
        response = post_comment(client, sample_review, bob, content="   ")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unauthenticated(self, client: TestClient, sample_review: Review):
        response = client.post(
            f"/api/v1/reviews/{sample_review.id}/comments",
            json={"content": "hi"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Read
# =============================================================================


class TestListComments:
    """Tests for GET /api/v1/reviews/{review_id}/comments"""

    def test_newest_first(self, client: TestClient, sample_review: Review, bob: Account):
        ids = [post_comment(client, sample_review, bob, content=f"c{i}").json()["id"] for i in range(3)]

        response = client.get(
            f"/api/v1/reviews/{sample_review.id}/comments",
            params={"size": 2},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_page"] == 2
        assert [c["id"] for c in data["comments"]] == [ids[2], ids[1]]

    def test_comment_count_on_review(self, client: TestClient, sample_review: Review, bob: Account):
        post_comment(client, sample_review, bob)
        post_comment(client, sample_review, bob)

        response = client.get(f"/api/v1/reviews/{sample_review.id}")

        assert response.json()["comment_count"] == 2

    def test_get_comment(self, client: TestClient, sample_review: Review, bob: Account):
        comment_id = post_comment(client, sample_review, bob).json()["id"]

        response = client.get(f"/api/v1/reviews/{sample_review.id}/comments/{comment_id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == comment_id

    def test_get_comment_wrong_review(
        self, client: TestClient, make_review, alice: Account, bob: Account
    ):
        first = make_review(alice)
        second = make_review(alice)
        comment_id = post_comment(client, first, bob).json()["id"]

        response = client.get(f"/api/v1/reviews/{second.id}/comments/{comment_id}")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_list_missing_review(self, client: TestClient):
        response = client.get("/api/v1/reviews/99999/comments")
        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Update / Delete
# =============================================================================


class TestModifyComment:
    """Tests for PUT/DELETE /api/v1/comments/{comment_id}"""

    def test_update_own_comment(self, client: TestClient, sample_review: Review, bob: Account):
        comment_id = post_comment(client, sample_review, bob).json()["id"]

        response = client.put(
            f"/api/v1/comments/{comment_id}",
            json={"content": "Edited"},
            headers=get_auth_header(bob),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["content"] == "Edited"

    def test_update_not_author(
        self, client: TestClient, sample_review: Review, alice: Account, bob: Account
    ):
        comment_id = post_comment(client, sample_review, bob).json()["id"]

        response = client.put(
            f"/api/v1/comments/{comment_id}",
            json={"content": "Hijacked"},
            headers=get_auth_header(alice),
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_delete_is_soft(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        bob: Account,
    ):
        comment_id = post_comment(client, sample_review, bob).json()["id"]

        response = client.delete(f"/api/v1/comments/{comment_id}", headers=get_auth_header(bob))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        listing = client.get(f"/api/v1/reviews/{sample_review.id}/comments").json()
        assert listing["comments"] == []
        assert listing["total_page"] == 0

        row = db_session.execute(
            select(Comment)
            .where(Comment.id == comment_id)
            .execution_options(include_deleted=True)
        ).scalar_one()
        assert row.is_deleted

    def test_delete_not_author(
        self, client: TestClient, sample_review: Review, alice: Account, bob: Account
    ):
        comment_id = post_comment(client, sample_review, bob).json()["id"]

        response = client.delete(f"/api/v1/comments/{comment_id}", headers=get_auth_header(alice))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_reply_to_deleted_comment(
        self, client: TestClient, sample_review: Review, alice: Account, bob: Account
    ):
        parent_id = post_comment(client, sample_review, bob).json()["id"]
        client.delete(f"/api/v1/comments/{parent_id}", headers=get_auth_header(bob))

        response = post_comment(client, sample_review, alice, parent_id=parent_id)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
