"""
Config Loader

Loads the run configuration from YAML and applies environment overrides.
"""

import logging
import os
from datetime import datetime, time, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from dataflow.candle_aggregation.session import SessionWindow
from dataflow.persistence.sink import DEFAULT_FILENAME_TEMPLATE
from schemas.market_data import Resolution

logger = logging.getLogger(__name__)

DEFAULT_EPOCH = datetime(2019, 1, 30, 7, 0, tzinfo=timezone.utc)
DEFAULT_DEADLINE = 5.0


class SessionConfig(BaseModel):
    """Excluded time-of-day interval, [excluded_start, excluded_end) UTC"""
    excluded_start: time = time(0, 0)
    excluded_end: time = time(7, 0)

    @field_validator("excluded_start", "excluded_end", mode="before")
    @classmethod
    def _minutes_to_time(cls, v: Any) -> Any:
        # YAML 1.1 reads an unquoted 22:00 as the base-60 integer 1320
        if isinstance(v, int) and not isinstance(v, bool):
            if not 0 <= v < 24 * 60:
                raise ValueError(f"time of day out of range: {v} minutes")
            return time(v // 60, v % 60)
        return v

    def to_window(self) -> SessionWindow:
        return SessionWindow(start=self.excluded_start, end=self.excluded_end)


class OutputConfig(BaseModel):
    """Where closed candles go"""
    sink: Literal["csv", "nats"] = "csv"
    directory: Path = Path(".")
    filename_template: str = DEFAULT_FILENAME_TEMPLATE


class RunConfig(BaseModel):
    """Complete configuration of one pipeline run"""
    resolutions: List[Resolution] = Field(
        default_factory=lambda: [Resolution.R5, Resolution.R30, Resolution.R240]
    )
    epoch: datetime = DEFAULT_EPOCH
    session: SessionConfig = Field(default_factory=SessionConfig)
    deadline_seconds: Optional[float] = Field(default=DEFAULT_DEADLINE, gt=0)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("resolutions")
    @classmethod
    def _ordered_unique(cls, v: List[Resolution]) -> List[Resolution]:
        if not v:
            raise ValueError("at least one resolution is required")
        if len(set(v)) != len(v):
            raise ValueError(f"duplicate resolutions: {[r.minutes for r in v]}")
        return sorted(v, key=lambda r: r.minutes)

    @field_validator("epoch")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _distinct_files(self) -> "RunConfig":
        if self.output.sink != "csv":
            return self
        try:
            names = {
                self.output.filename_template.format(minutes=r.minutes, label=r.label)
                for r in self.resolutions
            }
        except (KeyError, IndexError) as e:
            raise ValueError(f"invalid filename_template placeholder: {e}")
        if len(names) != len(self.resolutions):
            raise ValueError(
                "filename_template must produce one file per resolution; "
                "use {minutes} or {label}"
            )
        return self

    @classmethod
    def from_env(
        cls,
        base: Optional["RunConfig"] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "RunConfig":
        """
        Apply environment overrides on top of a base config.

        Environment Variables:
            CANDLE_RESOLUTIONS: Comma separated minutes (e.g. "5,30,240")
            CANDLE_EPOCH: Seed window start (ISO 8601)
            PIPELINE_DEADLINE: Deadline in seconds, "none" to disable
            OUTPUT_DIR: Directory for CSV output
            OUTPUT_SINK: "csv" or "nats"
        """
        env = os.environ if environ is None else environ
        data: Dict[str, Any] = (base or cls()).model_dump()

        if env.get("CANDLE_RESOLUTIONS"):
            data["resolutions"] = [
                int(m) for m in env["CANDLE_RESOLUTIONS"].split(",") if m.strip()
            ]
        if env.get("CANDLE_EPOCH"):
            data["epoch"] = env["CANDLE_EPOCH"]
        if env.get("PIPELINE_DEADLINE"):
            raw = env["PIPELINE_DEADLINE"].strip().lower()
            data["deadline_seconds"] = None if raw in ("none", "off", "0") else raw
        if env.get("OUTPUT_DIR"):
            data["output"]["directory"] = env["OUTPUT_DIR"]
        if env.get("OUTPUT_SINK"):
            data["output"]["sink"] = env["OUTPUT_SINK"]

        return cls.model_validate(data)


class ConfigLoader:
    """
    Loads and validates the run config.

    The loader:
    1. Reads the YAML file, if one is given
    2. Validates it into a RunConfig
    3. Applies environment overrides

    Example usage:
        loader = ConfigLoader(Path("config/pipeline.yaml"))
        config = loader.load()
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize loader.

        Args:
            config_path: YAML file; defaults are used when None
        """
        self.config_path = config_path

    def load(self, environ: Optional[Mapping[str, str]] = None) -> RunConfig:
        """
        Load the run config.

        Raises:
            ValueError: If the file can't be read or fails validation
        """
        base = self._load_file() if self.config_path else RunConfig()

        try:
            config = RunConfig.from_env(base, environ)
        except (ValidationError, ValueError) as e:
            raise ValueError(f"Invalid environment override: {e}")

        logger.info(
            f"Loaded run config: resolutions={[r.label for r in config.resolutions]}, "
            f"epoch={config.epoch.isoformat()}, deadline={config.deadline_seconds}, "
            f"sink={config.output.sink}"
        )
        return config

    def _load_file(self) -> RunConfig:
        try:
            with open(self.config_path) as f:
                raw = yaml.safe_load(f) or {}
            if not isinstance(raw, dict):
                raise ValueError("top level must be a mapping")
            return RunConfig(**raw)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
            logger.error(f"Failed to load {self.config_path}: {e}")
            raise ValueError(f"Failed to load {self.config_path}: {e}")
