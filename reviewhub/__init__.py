"""
Review Feed API Application Package

Backend for a social review-sharing service: accounts, reviews with tags
and images, comments, follows, reactions, notifications, and the review
feed subsystem (cached view counts, hot/cold rankings, per-viewer overlay).

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, sessions and the soft-delete filter
- exceptions.py: Service-level error taxonomy
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (feeds, rankings, view counts, scheduler, ...)
"""

__version__ = "0.1.0"
