"""Customer spending and merchant sales analytics."""

from .aggregations import customer_analytics, merchant_analytics
from .cache import AnalyticsCache, analytics_cache, get_analytics_cache
from .routes import router as analytics_router
from .service import AnalyticsService

__all__ = [
    "analytics_router",
    "AnalyticsCache",
    "AnalyticsService",
    "analytics_cache",
    "get_analytics_cache",
    "customer_analytics",
    "merchant_analytics",
]
