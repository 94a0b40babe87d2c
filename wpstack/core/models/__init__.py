"""
Domain models — Pydantic types for wpstack.

All models are re-exported here for convenient access:

    from wpstack.core.models import SiteConfig, HostSettings, Action, Receipt
"""

from wpstack.core.models.action import Action, Receipt
from wpstack.core.models.config import SECRET_FIELDS, SiteConfig
from wpstack.core.models.settings import HostSettings

__all__ = [
    # action.py
    "Action",
    # settings.py
    "HostSettings",
    "Receipt",
    "SECRET_FIELDS",
    # config.py
    "SiteConfig",
]
