"""Repository exports."""

from .api_call_log import ApiCallLogRepository
from .api_key import ApiKeyRepository
from .provider_config import ProviderConfigRepository
from .usage_stat import UsageStatRepository

__all__ = [
    "ApiCallLogRepository",
    "ApiKeyRepository",
    "ProviderConfigRepository",
    "UsageStatRepository",
]
