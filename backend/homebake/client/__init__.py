from .api import ApiError, HomeBakeClient
from .query_cache import QueryCache, create_batch_optimistic, record_sale_optimistic
from .change_feed import ChangeFeed

__all__ = [
    "ApiError",
    "HomeBakeClient",
    "QueryCache",
    "create_batch_optimistic",
    "record_sale_optimistic",
    "ChangeFeed",
]
