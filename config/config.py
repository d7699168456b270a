"""
Configuration classes for the inventory client core.
Defines connection, query and mutation settings in a type-safe, extensible way.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from utils.env import env_float, env_int

DEFAULT_API_URL = "http://localhost:8080/api"


@dataclass
class ApiClientConfig:
    base_url: str = DEFAULT_API_URL
    timeout_seconds: float = 10.0
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "ApiClientConfig":
        return cls(
            base_url=os.getenv("INVENTORY_API_URL", DEFAULT_API_URL),
            timeout_seconds=env_float("INVENTORY_API_TIMEOUT", 10.0),
        )


@dataclass
class QueryConfig:
    debounce_seconds: float = 0.3  # Quiet period before a parameter change is fetched
    page_limit: int | None = None

    @classmethod
    def from_env(cls) -> "QueryConfig":
        return cls(
            debounce_seconds=env_float("INVENTORY_QUERY_DEBOUNCE", 0.3),
            page_limit=env_int("INVENTORY_PAGE_LIMIT", None),
        )


@dataclass
class MutationConfig:
    default_threshold: int = 5
    export_dir: Path = field(default_factory=lambda: Path("exports"))

    @classmethod
    def from_env(cls) -> "MutationConfig":
        return cls(
            default_threshold=env_int("INVENTORY_DEFAULT_THRESHOLD", 5),
            export_dir=Path(os.getenv("INVENTORY_EXPORT_DIR", "exports")),
        )


# Example usage:
# api_config = ApiClientConfig.from_env()
# query_config = QueryConfig(debounce_seconds=0.5)
