"""
models/__init__.py — imports all ORM models so Alembic's env.py
sees them via Base.metadata when generating migrations.

Import order follows FK dependencies: users before listings before reviews.
"""
from planmystay.models.user import UserORM
from planmystay.models.listing import ListingORM
from planmystay.models.review import ReviewORM
from planmystay.models.journey import JourneyStageORM
from planmystay.models.session import SessionRecordORM

__all__ = ["UserORM", "ListingORM", "ReviewORM", "JourneyStageORM", "SessionRecordORM"]
