"""Database models package."""

from .api_call_log import ApiCallLog
from .api_key import ApiKey
from .provider_config import ProviderConfig
from .usage_stat import UsageStat

__all__ = ["ApiCallLog", "ApiKey", "ProviderConfig", "UsageStat"]
