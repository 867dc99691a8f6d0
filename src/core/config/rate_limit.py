"""Rate limiting settings.
"""

from pydantic_settings import BaseSettings


class RateLimitSettings(BaseSettings):
    """Defines the limiter storage and the capacity of each tier.

    Limits use the ``limits`` string notation; several windows for one tier are
    separated by ``;`` and all of them must have room for a request to pass.

    Attributes:
        RATE_LIMIT_STORAGE_URL: ``async+memory://`` keeps counters per process,
            ``async+redis://host:6379`` shares them between workers.
    """

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URL: str = "async+memory://"
    RATE_LIMIT_API: str = "60/minute"
    RATE_LIMIT_AUTH: str = "5/minute;20/hour"
    RATE_LIMIT_WRITES: str = "30/minute"
