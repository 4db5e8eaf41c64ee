"""
Import pipeline configuration.

Values come from environment variables with defaults suitable for a local
run against SQLite.
"""
import os
from dataclasses import dataclass


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes')


@dataclass
class ImportConfig:
    """Configuration for the batch import pipeline and its store."""

    database_url: str = 'sqlite+aiosqlite:///./hoa_import.db'
    transaction_timeout_seconds: float = 30.0  # per HOA transaction
    charge_update_batch_size: int = 100  # charge updates per savepoint
    pool_size: int = 5
    echo_sql: bool = False
    import_bucket: str = 'hoa-import-uploads'
    aws_region: str = 'eu-central-1'

    def __post_init__(self):
        if self.transaction_timeout_seconds <= 0:
            raise ValueError(f"transaction_timeout_seconds must be positive, got {self.transaction_timeout_seconds}")
        if self.charge_update_batch_size < 1:
            raise ValueError(f"charge_update_batch_size must be at least 1, got {self.charge_update_batch_size}")
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be at least 1, got {self.pool_size}")

    @classmethod
    def from_environment(cls) -> 'ImportConfig':
        """
        Create configuration from environment variables with fallback to defaults.

        Environment variables:
        - DATABASE_URL
        - IMPORT_TRANSACTION_TIMEOUT
        - IMPORT_CHARGE_UPDATE_BATCH_SIZE
        - IMPORT_DB_POOL_SIZE
        - IMPORT_DB_ECHO
        - IMPORT_BUCKET
        - AWS_REGION
        """
        return cls(
            database_url=os.getenv('DATABASE_URL', cls.database_url),
            transaction_timeout_seconds=float(os.getenv('IMPORT_TRANSACTION_TIMEOUT', cls.transaction_timeout_seconds)),
            charge_update_batch_size=int(os.getenv('IMPORT_CHARGE_UPDATE_BATCH_SIZE', cls.charge_update_batch_size)),
            pool_size=int(os.getenv('IMPORT_DB_POOL_SIZE', cls.pool_size)),
            echo_sql=_env_flag('IMPORT_DB_ECHO'),
            import_bucket=os.getenv('IMPORT_BUCKET', cls.import_bucket),
            aws_region=os.getenv('AWS_REGION', cls.aws_region),
        )
