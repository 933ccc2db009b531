"""Test configuration for the bookshelf service.

The environment is pinned before any application module is imported so the
default configuration never points at real Redis, Kafka or PostgreSQL.
"""

import os

os.environ["APP_ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["KAFKA_ENABLED"] = "false"
os.environ["KAFKA_CONSUMER_ENABLED"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from tests.fixtures import *  # noqa: E402,F401,F403
