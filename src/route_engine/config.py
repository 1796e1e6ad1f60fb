"""Engine configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTE_ENGINE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Route Optimization Engine"
    data_root: Path = Field(default=Path("data"), description="Root directory for catalog files and stored requests.")
    catalog_file: Path = Field(
        default=Path("data/route_catalog.xlsx"),
        description="Fallback workbook with 'routes', 'segments' and 'carriers' sheets.",
    )
    request_store: Literal["memory", "file", "supabase"] = Field(
        default="memory",
        description="Sink used to persist optimization requests.",
    )

    default_algorithm: str = Field(default="weighted_shortest_path")
    best_routes_limit: int = Field(default=5, ge=1)
    history_limit: int = Field(default=10, ge=1)
    reference_max_distance_km: float = Field(
        default=10_000.0,
        gt=0.0,
        description="Distance treated as worst case when scoring route length.",
    )

    parallel_threshold: int = Field(
        default=32,
        ge=1,
        description="Candidate count above which routes are evaluated in a worker pool.",
    )
    max_workers: int = Field(default=8, ge=1)
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for the stochastic strategies when the caller does not inject a generator.",
    )

    perturbation_population_size: int = Field(default=10, ge=1)
    perturbation_amplitude: float = Field(default=10.0, ge=0.0)
    refinement_iterations: int = Field(default=50, ge=0)
    refinement_temperature: float = Field(default=100.0, gt=0.0)
    refinement_cooling_rate: float = Field(default=0.95, gt=0.0, le=1.0)
    reinforcement_agents: int = Field(default=20, ge=0)
    reinforcement_deposit: float = Field(default=0.1, ge=0.0)

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("data_root", "catalog_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("default_algorithm", mode="before")
    @classmethod
    def _normalize_algorithm(cls, value: Any) -> str:
        return str(value).strip().lower().replace("-", "_")


settings = Settings()
