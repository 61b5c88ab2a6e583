"""
Tests for the User-Status Overlay

get_user_status() returns per-viewer flags for a list of review ids;
apply_user_status() copies them onto an already built page.
"""

from sqlalchemy.orm import Session

from reviewhub.models import UserBlock
from reviewhub.services import reactions
from reviewhub.services.reviews import to_responses
from reviewhub.services.user_status import apply_user_status, get_user_status


class TestGetUserStatus:

    def test_flags_per_review(self, db_session: Session, make_review, alice, bob):
        liked = make_review(alice)
        other = make_review(alice)
        reactions.like_review(db_session, bob.id, liked.id)
        reactions.dislike_review(db_session, bob.id, other.id)
        reactions.bookmark_review(db_session, bob.id, other.id)

        statuses = get_user_status(db_session, bob.id, [liked.id, other.id])

        assert [s.review_id for s in statuses] == [liked.id, other.id]
        assert statuses[0].is_my_like is True
        assert statuses[0].is_my_dislike is False
        assert statuses[1].is_my_dislike is True
        assert statuses[1].is_my_bookmark is True
        assert statuses[1].is_my_like is False

    def test_block_flag_follows_author(self, db_session: Session, make_review, alice, bob, carol):
        blocked_author = make_review(alice)
        other_author = make_review(carol)
        db_session.add(UserBlock(blocker_id=bob.id, blocked_id=alice.id))
        db_session.commit()

        statuses = get_user_status(db_session, bob.id, [blocked_author.id, other_author.id])

        assert [s.is_my_block for s in statuses] == [True, False]

    def test_other_viewers_reactions_ignored(self, db_session: Session, sample_review, bob, carol):
        reactions.like_review(db_session, carol.id, sample_review.id)

        [status] = get_user_status(db_session, bob.id, [sample_review.id])

        assert status.is_my_like is False

    def test_keeps_request_order_and_duplicates(self, db_session: Session, make_review, alice, bob):
        first = make_review(alice)
        second = make_review(alice)

        statuses = get_user_status(db_session, bob.id, [second.id, first.id, second.id])

        assert [s.review_id for s in statuses] == [second.id, first.id, second.id]

    def test_empty_request(self, db_session: Session, bob):
        assert get_user_status(db_session, bob.id, []) == []

    def test_unknown_review_ids_are_all_false(self, db_session: Session, bob):
        [status] = get_user_status(db_session, bob.id, [987654])

        assert not any([
            status.is_my_like,
            status.is_my_dislike,
            status.is_my_bookmark,
            status.is_my_block,
        ])


class TestApplyUserStatus:

    def test_anonymous_viewer_unchanged(self, db_session: Session, sample_review, bob):
        reactions.like_review(db_session, bob.id, sample_review.id)
        items = to_responses(db_session, [sample_review])

        result = apply_user_status(db_session, None, items)

        assert result[0].is_my_like is False

    def test_decorates_without_reordering(self, db_session: Session, make_review, alice, bob):
        first = make_review(alice)
        second = make_review(alice)
        reactions.bookmark_review(db_session, bob.id, first.id)
        items = to_responses(db_session, [second, first])

        result = apply_user_status(db_session, bob.id, items)

        assert [r.id for r in result] == [second.id, first.id]
        assert result[0].is_my_bookmark is False
        assert result[1].is_my_bookmark is True
        assert result[1].bookmark_count == 1
