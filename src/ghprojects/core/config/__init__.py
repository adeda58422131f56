"""Configuration models for ghprojects.

Re-exports the retry policy, application settings and the preference store.
"""

from ghprojects.core.config.retry import RetryPolicy
from ghprojects.core.config.settings import AppSettings, LogSettings, default_config_dir
from ghprojects.core.config.preferences import PreferenceStore, Preferences

__all__ = [
    "AppSettings",
    "LogSettings",
    "PreferenceStore",
    "Preferences",
    "RetryPolicy",
    "default_config_dir",
]
