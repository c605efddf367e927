"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import MINUTES_PER_DAY, parse_hhmm
from .domain.slot_merger import ALL_DAYS, ScanWindow

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DefaultsConfig(BaseModel):
    """Default settings for free slot searches and the comparison grid."""
    granularity_minutes: int = 60
    day_start: str = "08:00"
    day_end: str = "22:00"
    grid_first_hour: int = 8
    grid_last_hour: int = 22
    min_duration_minutes: int = 0

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Ensure the sampling step is positive and fits in a day."""
        if not 0 < value <= MINUTES_PER_DAY:
            raise ValueError(f"granularity_minutes must be between 1 and {MINUTES_PER_DAY}, got {value}")
        return value

    @field_validator("min_duration_minutes")
    @classmethod
    def validate_min_duration(cls, value: int) -> int:
        if value < 0:
            raise ValueError("min_duration_minutes must not be negative")
        return value

    @field_validator("day_start")
    @classmethod
    def validate_day_start(cls, value: str) -> str:
        parse_hhmm(value)
        return value

    @field_validator("day_end")
    @classmethod
    def validate_day_end(cls, value: str) -> str:
        parse_hhmm(value, allow_end_of_day=True)
        return value

    @field_validator("grid_first_hour", "grid_last_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_order(self) -> "DefaultsConfig":
        """Ensure the scan window and the grid both open before they close."""
        if parse_hhmm(self.day_end, allow_end_of_day=True) <= parse_hhmm(self.day_start):
            raise ValueError("day_end must be later than day_start")
        if self.grid_last_hour < self.grid_first_hour:
            raise ValueError("grid_last_hour must not be earlier than grid_first_hour")
        return self

    def scan_window(
        self,
        granularity_minutes: Optional[int] = None,
        day_start: Optional[str] = None,
        day_end: Optional[str] = None,
        days: Optional[Sequence[int]] = None
    ) -> ScanWindow:
        """Build the sampling window, letting callers override single values."""
        return ScanWindow.from_hhmm(
            day_start=day_start if day_start is not None else self.day_start,
            day_end=day_end if day_end is not None else self.day_end,
            granularity_minutes=(
                granularity_minutes if granularity_minutes is not None else self.granularity_minutes
            ),
            days=days if days is not None else ALL_DAYS,
        )

    def grid_hours(self) -> List[int]:
        """Hours shown in the comparison grid, last hour included."""
        return list(range(self.grid_first_hour, self.grid_last_hour + 1))


class Colleague(BaseModel):
    """Colleague configuration."""
    name: str  # Used as alias
    id: str
    email: str = ""

    def display_name(self) -> str:
        """Get display name."""
        return self.name


class AppConfig(BaseModel):
    """Application configuration."""
    api_base_url: str = "http://localhost:3000/api"
    timezone: str = "Europe/Lisbon"
    log_level: str = "WARNING"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    colleagues: List[Colleague] = Field(default_factory=list)

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"api_base_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level

    @field_validator("colleagues")
    @classmethod
    def validate_colleagues(cls, value: List[Colleague]) -> List[Colleague]:
        """Ensure colleague aliases and ids are unique."""
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        for colleague in value:
            name_key = colleague.name.lower()
            id_key = colleague.id.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate colleague name detected: {colleague.name}")
            if id_key in seen_ids:
                raise ValueError(f"Duplicate colleague id detected: {colleague.id}")
            seen_names.add(name_key)
            seen_ids.add(id_key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_colleague_by_name(self, name: str) -> Colleague | None:
        """Find a colleague by their name (alias)."""
        for colleague in self.colleagues:
            if colleague.name.lower() == name.lower():
                return colleague
        return None

    def find_colleague_by_id(self, person_id: str) -> Colleague | None:
        """Find a colleague by their id."""
        for colleague in self.colleagues:
            if colleague.id.lower() == person_id.lower():
                return colleague
        return None

    def display_name_for(self, person_id: str) -> str:
        """Name to show for a person id, falling back to the id itself."""
        colleague = self.find_colleague_by_id(person_id)
        return colleague.name if colleague else person_id

    def with_colleagues(self, extra: Iterable[Colleague]) -> "AppConfig":
        """
        Return a copy that also knows the given colleagues.

        Configured entries win: extra colleagues whose id or name is already
        taken are ignored.
        """
        merged = list(self.colleagues)
        for colleague in extra:
            if self.find_colleague_by_id(colleague.id) or self.find_colleague_by_name(colleague.name):
                continue
            if any(c.id.lower() == colleague.id.lower() for c in merged):
                continue
            merged.append(colleague)
        return self.model_copy(update={"colleagues": merged})

    def resolve_participant(self, identifier: str) -> str:
        """
        Resolve a participant identifier (name/alias or id) to a person id.

        Args:
            identifier: Name/alias, configured id, or "me"

        Returns:
            Person id

        Raises:
            ValueError: If identifier cannot be resolved
        """
        if identifier.lower() == "me":
            return "me"

        colleague = self.find_colleague_by_name(identifier)
        if colleague:
            return colleague.id

        colleague = self.find_colleague_by_id(identifier)
        if colleague:
            return colleague.id

        raise ValueError(
            f"Unknown participant identifier: '{identifier}'. "
            f"Use a configured name or id."
        )

    def resolve_participants(self, identifiers: Sequence[str]) -> List[str]:
        """
        Resolve multiple participant identifiers, ensuring uniqueness.

        Args:
            identifiers: Iterable of participant aliases or ids.

        Returns:
            List of unique person ids.
        """
        if not identifiers:
            raise ValueError("No participants provided.")

        resolved_ids: List[str] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers:
            try:
                person_id = self.resolve_participant(identifier)
            except ValueError:
                unknown_identifiers.append(identifier)
                continue

            if person_id not in resolved_ids:
                resolved_ids.append(person_id)

        if unknown_identifiers:
            missing = ", ".join(sorted(set(unknown_identifiers)))
            raise ValueError(
                f"Unknown participant identifier(s): {missing}. "
                "Ensure they exist in the configuration."
            )

        return resolved_ids


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
