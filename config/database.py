"""
Database configuration for the back service's Item Store.

Supports:
- Local development (SQLite)
- PostgreSQL via DATABASE_URL or DB_* variables
- AWS Lambda (short-lived connections)
"""
import os
import re
from pathlib import Path

DATABASE_URL_PATTERN = re.compile(
    r'postgres(?:ql)?://(?P<user>[^:]+):(?P<password>[^@]+)@(?P<host>[^:/]+):(?P<port>\d+)/(?P<name>.+)'
)


def get_database_config(base_dir: Path) -> dict:
    """
    Returns the default database configuration for the environment.

    Precedence: DATABASE_URL, then DB_HOST and friends, then SQLite.
    """
    database_url = os.getenv('DATABASE_URL', '')
    if database_url.startswith('postgres'):
        config = parse_database_url(database_url)
    elif os.getenv('DB_HOST'):
        config = {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.getenv('DB_NAME', 'todo_relay'),
            'USER': os.getenv('DB_USER', 'postgres'),
            'PASSWORD': os.getenv('DB_PASSWORD', ''),
            'HOST': os.getenv('DB_HOST'),
            'PORT': os.getenv('DB_PORT', '5432'),
        }
    else:
        return {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.getenv('SQLITE_PATH', str(base_dir / 'db.sqlite3')),
        }

    # Lambda containers are frozen between invocations
    if os.getenv('AWS_LAMBDA_FUNCTION_NAME'):
        config['CONN_MAX_AGE'] = 0
        config['OPTIONS'] = {'connect_timeout': 5}

    return config


def parse_database_url(url: str) -> dict:
    """Parse a PostgreSQL DATABASE_URL into a Django config dict."""
    match = DATABASE_URL_PATTERN.match(url)
    if not match:
        raise ValueError(f"Invalid DATABASE_URL format: {url}")

    return {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': match.group('name'),
        'USER': match.group('user'),
        'PASSWORD': match.group('password'),
        'HOST': match.group('host'),
        'PORT': match.group('port'),
    }
