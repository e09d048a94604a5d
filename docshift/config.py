"""Engine configuration."""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

ENV_PREFIX = "DOCSHIFT_"


@dataclass
class StrategyThresholds:
    """
    Cardinality cutoffs for standalone vs embedded collections.

    An entity referenced by exactly one parent is embedded when it has at
    most ``embed_max_records`` rows and at most ``embed_max_ratio`` rows per
    parent row.
    """
    embed_max_ratio: float = 0.5
    embed_max_records: int = 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "embed_max_ratio": self.embed_max_ratio,
            "embed_max_records": self.embed_max_records,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StrategyThresholds":
        return cls(
            embed_max_ratio=float(data.get("embed_max_ratio", 0.5)),
            embed_max_records=int(data.get("embed_max_records", 1000)),
        )


@dataclass
class EngineConfig:
    """Configuration for planning and executing migrations."""

    # Strategy classification
    thresholds: StrategyThresholds = field(default_factory=StrategyThresholds)

    # Execution options
    execution_timeout_seconds: Optional[float] = 600.0  # None disables the timeout

    # Catalog matching
    case_insensitive_names: bool = True

    # Collaborators
    catalog_file: Optional[str] = None  # JSON snapshot with source and target catalogs
    source_catalog_url: Optional[str] = None
    target_catalog_url: Optional[str] = None
    executor_url: Optional[str] = None  # Bulk-transfer service
    api_key: Optional[str] = None

    # Output
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "thresholds": self.thresholds.to_dict(),
            "execution_timeout_seconds": self.execution_timeout_seconds,
            "case_insensitive_names": self.case_insensitive_names,
            "catalog_file": self.catalog_file,
            "source_catalog_url": self.source_catalog_url,
            "target_catalog_url": self.target_catalog_url,
            "executor_url": self.executor_url,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create from dictionary representation."""
        timeout = data.get("execution_timeout_seconds", 600.0)

        return cls(
            thresholds=StrategyThresholds.from_dict(data.get("thresholds", {})),
            execution_timeout_seconds=float(timeout) if timeout is not None else None,
            case_insensitive_names=data.get("case_insensitive_names", True),
            catalog_file=data.get("catalog_file"),
            source_catalog_url=data.get("source_catalog_url"),
            target_catalog_url=data.get("target_catalog_url"),
            executor_url=data.get("executor_url"),
            api_key=data.get("api_key"),
            log_level=data.get("log_level", "INFO"),
        )

    @classmethod
    def from_json_file(cls, filepath: str) -> "EngineConfig":
        """Load configuration from a JSON file."""
        with open(filepath) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_env(cls, base: Optional["EngineConfig"] = None) -> "EngineConfig":
        """
        Overlay ``DOCSHIFT_*`` environment variables on a configuration.

        Recognized: DOCSHIFT_CATALOG_FILE, DOCSHIFT_SOURCE_CATALOG_URL,
        DOCSHIFT_TARGET_CATALOG_URL, DOCSHIFT_EXECUTOR_URL, DOCSHIFT_API_KEY,
        DOCSHIFT_EXECUTION_TIMEOUT, DOCSHIFT_EMBED_MAX_RATIO,
        DOCSHIFT_EMBED_MAX_RECORDS, DOCSHIFT_LOG_LEVEL.
        """
        config = base or cls()
        env = os.environ

        for attr in ("catalog_file", "source_catalog_url", "target_catalog_url",
                     "executor_url", "api_key", "log_level"):
            value = env.get(ENV_PREFIX + attr.upper())
            if value:
                setattr(config, attr, value)

        timeout = env.get(ENV_PREFIX + "EXECUTION_TIMEOUT")
        if timeout:
            config.execution_timeout_seconds = float(timeout) if float(timeout) > 0 else None

        ratio = env.get(ENV_PREFIX + "EMBED_MAX_RATIO")
        if ratio:
            config.thresholds.embed_max_ratio = float(ratio)

        max_records = env.get(ENV_PREFIX + "EMBED_MAX_RECORDS")
        if max_records:
            config.thresholds.embed_max_records = int(max_records)

        return config
