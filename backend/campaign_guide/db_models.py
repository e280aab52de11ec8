# Import all models once to ensure SQLAlchemy mapper registry is fully populated.

from .quota.models import GuidelineUsage  # noqa: F401
