"""
streambench Configuration
=========================

This module handles configuration loading for the benchmark harness.

Configuration Sources (in order of precedence):
    1. Command-line positionals (applied by main)
    2. Environment variables
    3. config.yaml file
    4. Default values (lowest priority)

Environment Variable Mapping:
    STREAMBENCH_ENDPOINT        -> transport.endpoint
    STREAMBENCH_REMOVE_STALE    -> transport.remove_stale
    STREAMBENCH_WIDTH           -> frame.width
    STREAMBENCH_HEIGHT          -> frame.height
    STREAMBENCH_FPS             -> frame.fps
    STREAMBENCH_WORKERS         -> producer.workers
    STREAMBENCH_SEED            -> producer.seed
    STREAMBENCH_REPORT_INTERVAL -> monitor.report_interval
    STREAMBENCH_LOG_LEVEL       -> logging.level
    STREAMBENCH_LOG_FORMAT      -> logging.format

Example:
    from streambench.config import load_config

    settings = load_config()
    print(settings.frame.fps)
    print(settings.transport.endpoint)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class FrameConfig(BaseModel):
    """Synthetic frame geometry and target rate."""

    width: int = Field(default=1920, ge=1, description="Frame width in bytes")
    height: int = Field(default=1080, ge=1, description="Frame height in rows")
    fps: float = Field(default=60.0, gt=0, allow_inf_nan=False, description="Target frames per second")

    @property
    def size(self) -> int:
        """Bytes per frame."""
        return self.width * self.height


class TransportConfig(BaseModel):
    """Transport endpoint configuration."""

    endpoint: str = Field(
        default="unix:/tmp/streambench.sock",
        description="unix:<path>, bare path, or hv:<vm>:<service>",
    )
    backlog: int = Field(default=128, ge=1, description="listen() backlog")
    remove_stale: bool = Field(
        default=False,
        description="Unlink an existing unix socket file before binding",
    )


class ProducerConfig(BaseModel):
    """Frame producer pool configuration."""

    workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Producer threads (None = one per available CPU)",
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Entropy for frame generators (None = OS entropy)",
    )


class MonitorConfig(BaseModel):
    """Client latency monitor configuration."""

    report_interval: float = Field(
        default=1.0,
        gt=0,
        allow_inf_nan=False,
        description="Seconds between average-latency reports",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: Literal["json", "text"] = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for streambench.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    frame: FrameConfig = Field(default_factory=FrameConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    producer: ProducerConfig = Field(default_factory=ProducerConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration

    Raises:
        pydantic.ValidationError: If a value is out of range
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("streambench.yaml"),
            Path("config.yaml"),
            Path("config.yml"),
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Transport settings
    if env_endpoint := os.environ.get("STREAMBENCH_ENDPOINT"):
        config_data.setdefault("transport", {})["endpoint"] = env_endpoint
    if env_stale := os.environ.get("STREAMBENCH_REMOVE_STALE"):
        config_data.setdefault("transport", {})["remove_stale"] = env_stale.lower() in ("1", "true", "yes")

    # Frame settings
    if env_width := os.environ.get("STREAMBENCH_WIDTH"):
        config_data.setdefault("frame", {})["width"] = int(env_width)
    if env_height := os.environ.get("STREAMBENCH_HEIGHT"):
        config_data.setdefault("frame", {})["height"] = int(env_height)
    if env_fps := os.environ.get("STREAMBENCH_FPS"):
        config_data.setdefault("frame", {})["fps"] = float(env_fps)

    # Producer settings
    if env_workers := os.environ.get("STREAMBENCH_WORKERS"):
        config_data.setdefault("producer", {})["workers"] = int(env_workers)
    if env_seed := os.environ.get("STREAMBENCH_SEED"):
        config_data.setdefault("producer", {})["seed"] = int(env_seed)

    # Monitor settings
    if env_interval := os.environ.get("STREAMBENCH_REPORT_INTERVAL"):
        config_data.setdefault("monitor", {})["report_interval"] = float(env_interval)

    # Logging settings
    if env_log := os.environ.get("STREAMBENCH_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("STREAMBENCH_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings. Logs go to stderr."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "thread": "%(threadName)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
