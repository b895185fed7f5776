"""
Configuration for the route planner.

``Settings`` is a pydantic-settings model. Every field can be set from
the environment with the ``ROUTEPLANNER_`` prefix (case-insensitive),
e.g. ``ROUTEPLANNER_MAX_DESTINATIONS=8``. The Streamlit app also passes
``st.secrets`` to :meth:`Settings.from_mapping`, so deployments can
override fields in ``.streamlit/secrets.toml``:

    MAX_DESTINATIONS = 8
    GEOCODER_USER_AGENT = "my_route_planner"
    DEFAULT_CENTER = "28.6,77.2"

Secrets take precedence over environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Mapping, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEPLANNER_",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    max_destinations: int = Field(default=10, ge=1)
    geocoder_user_agent: str = "RoutePlanner/1.0"
    suggestion_limit: int = Field(default=5, ge=1)
    store_path: Path = Field(
        default=Path("routeplanner_state.json"),
        description="JSON file holding saved destinations and the manual start.",
    )
    # Delhi
    default_center: Annotated[Tuple[float, float], NoDecode] = (28.6139, 77.2090)
    default_zoom: int = Field(default=11, ge=0, le=19)

    @field_validator("default_center", mode="before")
    @classmethod
    def _parse_center(cls, value: Any) -> Any:
        if isinstance(value, str):
            parts = [p.strip() for p in value.strip().strip("[]()").split(",")]
            if len(parts) != 2:
                raise ValueError("default_center must be 'lat,lon'")
            return tuple(parts)
        return value

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]] = None) -> "Settings":
        """Build settings from a mapping of (case-insensitive) field names.

        Unknown keys are ignored so the same mapping can hold unrelated
        secrets. Fields missing from the mapping come from the
        environment or the defaults.

        Raises:
            pydantic.ValidationError: If a value cannot be coerced.
        """
        lowered = {str(k).lower(): v for k, v in (values or {}).items()}
        overrides = {name: lowered[name] for name in cls.model_fields if name in lowered}
        return cls(**overrides)
