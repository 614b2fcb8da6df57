"""
Snowflake Connection Factory
meddpicc_scoring/services/snowflake.py

Used by repositories via dependency injection.
"""

import snowflake.connector

from meddpicc_scoring.config import get_settings


def get_snowflake_connection():
    """Open a Snowflake connection from application settings."""
    settings = get_settings()
    password = settings.SNOWFLAKE_PASSWORD.get_secret_value() if settings.SNOWFLAKE_PASSWORD else None

    return snowflake.connector.connect(
        account=settings.SNOWFLAKE_ACCOUNT,
        user=settings.SNOWFLAKE_USER,
        password=password,
        warehouse=settings.SNOWFLAKE_WAREHOUSE,
        database=settings.SNOWFLAKE_DATABASE,
        schema=settings.SNOWFLAKE_SCHEMA,
        role=settings.SNOWFLAKE_ROLE,
    )
