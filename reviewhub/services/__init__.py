"""
Services Package

Business logic, separate from HTTP handling. Routers stay thin and
translate requests into service calls; services raise
reviewhub.exceptions errors, never HTTPException.

Current services:
- accounts.py: registration, login, profile updates, OAuth account linking
- cache.py: Redis access with graceful degradation
- comments.py: comments, replies and account tags
- email.py / email_verification.py: verification codes over SMTP
- events.py: notification events on Redis pub/sub
- feeds.py: every review feed variant
- follows.py: follow and block edges
- notifications.py: notification rows and listing
- oauth.py: Naver and Kakao sign-in
- pagination.py: page/size contract shared by all lists
- ranking.py: hot/cold snapshots
- rate_limiter.py: slowapi limiter with Redis storage
- reactions.py: likes, dislikes and bookmarks
- reviews.py: review CRUD and detail
- scheduler.py: background view-count flush and ranking refresh
- security.py: password hashing and JWT utilities
- user_status.py: per-viewer flags on review pages
- view_counts.py: Redis view counters and their flush
"""
