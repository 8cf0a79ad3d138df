"""
Configuration management for storebench.

Loads and validates configuration from storebench.toml files and
STOREBENCH_* environment variables using Pydantic.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_FILENAME = "storebench.toml"

# Reference profile: the document store is seeded with far fewer orders
DEFAULT_ORDER_COUNTS = {
    "mongo": 10_000,
    "postgres": 500_000,
    "memory": 10_000,
}


class PostgresSettings(BaseSettings):
    """Relational store connection configuration."""

    model_config = SettingsConfigDict(env_prefix="STOREBENCH_POSTGRES_")

    url: str = Field(
        default="postgresql://localhost/benchmark",
        description="PostgreSQL connection URL",
    )
    schema_name: str = Field(default="benchmark", description="Schema holding the tables")


class MongoSettings(BaseSettings):
    """Document store connection configuration."""

    model_config = SettingsConfigDict(env_prefix="STOREBENCH_MONGO_")

    url: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URL")
    database: str = Field(default="BenchmarkDB", description="Database name")
    max_pool_size: int = Field(default=4, ge=1, description="Connection pool bound")


class SeedSettings(BaseSettings):
    """Dataset size, batching and progress reporting."""

    model_config = SettingsConfigDict(env_prefix="STOREBENCH_SEED_")

    customer_count: int = Field(default=100_000, ge=0)
    product_count: int = Field(default=1_000, ge=0)
    order_count: Optional[int] = Field(
        default=None, ge=0, description="Orders to seed (default depends on backend)"
    )
    batch_size: int = Field(default=1_000, ge=1, description="Customers/products per batch")
    order_batch_size: int = Field(default=10, ge=1, description="Orders per batch")
    progress_interval: int = Field(default=10_000, ge=1)
    product_progress_interval: Optional[int] = Field(default=None, ge=1)
    order_progress_interval: int = Field(default=50_000, ge=1)
    email_domain: str = Field(default="example.com")
    workers: int = Field(default=1, ge=1, le=32, description="Order assembly workers")
    random_seed: Optional[int] = Field(default=None, description="Random seed for reproducible data")

    def orders_for(self, backend: str) -> int:
        """Order count for ``backend``, falling back to the reference profile."""
        if self.order_count is not None:
            return self.order_count
        return DEFAULT_ORDER_COUNTS.get(backend, DEFAULT_ORDER_COUNTS["memory"])

    def product_interval(self) -> int:
        """Product progress interval, proportional to the product count by default."""
        if self.product_progress_interval is not None:
            return self.product_progress_interval
        return max(1, min(self.progress_interval, self.product_count // 5))


class BenchmarkSettings(BaseSettings):
    """Benchmark query parameters."""

    model_config = SettingsConfigDict(env_prefix="STOREBENCH_BENCHMARK_")

    window_days: int = Field(default=180, ge=0)
    email_suffix: str = Field(default="@example.com")
    top_n: int = Field(default=100, ge=0)
    repetitions: int = Field(default=5, ge=1)
    warmup: int = Field(default=1, ge=0)


class Config(BaseSettings):
    """
    Main configuration for storebench.

    Environment variables take precedence over values from storebench.toml.
    Nested values use ``__``, e.g. ``STOREBENCH_SEED__ORDER_COUNT=100``.
    """

    model_config = SettingsConfigDict(env_prefix="STOREBENCH_", env_nested_delimiter="__")

    backend: Literal["postgres", "mongo", "memory"] = Field(default="memory")
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    mongo: MongoSettings = Field(default_factory=MongoSettings)
    seed: SeedSettings = Field(default_factory=SeedSettings)
    benchmark: BenchmarkSettings = Field(default_factory=BenchmarkSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # TOML values arrive as init kwargs; the environment overrides them
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to storebench.toml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        return cls(**data)

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> Config:
        """
        Find and load configuration from storebench.toml.

        Searches for storebench.toml starting from start_dir and walking up
        parent directories until found or reaching filesystem root.

        Raises:
            FileNotFoundError: If no config file found
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return cls.from_toml(config_path)

            parent = current.parent
            if parent == current:
                break
            current = parent

        raise FileNotFoundError(
            f"No {CONFIG_FILENAME} found in {start_dir} or parent directories. "
            f"Run 'storebench init' to create one."
        )

    def to_toml(self, path: Path | str) -> None:
        """
        Write configuration to TOML file.

        Unset optional values are written as comments.

        Args:
            path: Path to write storebench.toml
        """
        seed = self.seed

        def optional(key: str, value: Optional[int]) -> str:
            return f"{key} = {value}" if value is not None else f"# {key} ="

        toml_content = f"""# storebench configuration

backend = "{self.backend}"

[postgres]
url = "{self.postgres.url}"
schema_name = "{self.postgres.schema_name}"

[mongo]
url = "{self.mongo.url}"
database = "{self.mongo.database}"
max_pool_size = {self.mongo.max_pool_size}

[seed]
customer_count = {seed.customer_count}
product_count = {seed.product_count}
{optional('order_count', seed.order_count)}
batch_size = {seed.batch_size}
order_batch_size = {seed.order_batch_size}
progress_interval = {seed.progress_interval}
{optional('product_progress_interval', seed.product_progress_interval)}
order_progress_interval = {seed.order_progress_interval}
email_domain = "{seed.email_domain}"
workers = {seed.workers}
{optional('random_seed', seed.random_seed)}

[benchmark]
window_days = {self.benchmark.window_days}
email_suffix = "{self.benchmark.email_suffix}"
top_n = {self.benchmark.top_n}
repetitions = {self.benchmark.repetitions}
warmup = {self.benchmark.warmup}
"""

        Path(path).write_text(toml_content)
