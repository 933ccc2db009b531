"""Current configuration, held in a context variable.

The default comes from ``config.yaml`` at import time. ``with_context``
layers overrides on top of it for the duration of a block.
"""

from contextlib import contextmanager
from contextvars import ContextVar

from src.bookshelf.runtime.config.config_data import ConfigData
from src.bookshelf.runtime.config.config_template import load_default_config

_current_config: ContextVar[ConfigData] = ContextVar(
    "bookshelf_config", default=load_default_config()
)


def _merge_dicts(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Temporarily override the current configuration.

    Only the fields explicitly set on ``config_override`` replace the current
    values; everything else is inherited.

    Example:
        with with_context(ConfigData(redis=RedisConfig(expiry_books=5))):
            assert get_config().redis.expiry_books == 5
            # get_config().redis.host is inherited
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    merged = _merge_dicts(
        get_config().model_dump(), config_override.model_dump(exclude_unset=True)
    )
    token = _current_config.set(ConfigData.model_validate(merged))
    try:
        yield
    finally:
        _current_config.reset(token)


def get_config() -> ConfigData:
    """Return the configuration in effect for the current context."""
    return _current_config.get()
