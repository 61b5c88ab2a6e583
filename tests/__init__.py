"""
Test Suite for the Review Feed API

Test Organization:
- conftest.py: Shared fixtures (test database, in-memory Redis, client, sample data)
- test_view_counts.py: View counting and the view-count flush
- test_ranking.py: Hot/cold snapshots
- test_feeds.py: Feed variants, timeframes and pagination
- test_user_status.py: Per-viewer overlay
- test_reviews.py, test_comments.py, test_auth.py, test_users.py: HTTP endpoints
- test_scheduler.py, test_events.py, test_oauth.py: Supporting services
- test_app.py: Health endpoints and error mapping

Running Tests:
    pytest
    pytest --cov=reviewhub --cov-report=html
    pytest tests/test_feeds.py -v
"""
