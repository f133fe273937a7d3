"""
Auction house configuration, loaded from a TOML file

.. code-block:: toml

    [database]
    url = "sqlite:///auctionhouse.db"
    lock_timeout = 5.0          # seconds
    echo = false

    [scheduler]
    sweep_interval = 60         # seconds
    batch_size = 100

    [notifications]
    max_attempts = 3

    [logging]
    level = "INFO"

    [logging.loggers]            # per logger level overrides
    CloseExpiredAuctions = "DEBUG"

All keys are optional.
"""
import tomllib
from dataclasses import dataclass, field, asdict
from datetime import timedelta
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class DatabaseConfig:
    """
    DatabaseConfig
    """

    url: str = "sqlite:///auctionhouse.db"
    # seconds
    lock_timeout: float = 5.0
    echo: bool = False


@dataclass(slots=True)
class SchedulerConfig:
    """
    SchedulerConfig
    """

    # seconds
    sweep_interval: float = 60
    batch_size: int = 100

    @property
    def sweep_interval_timedelta(self) -> timedelta:
        """
        :return: sweep interval as a timedelta
        """
        return timedelta(seconds=self.sweep_interval)


@dataclass(slots=True)
class NotificationsConfig:
    """
    NotificationsConfig
    """

    max_attempts: int = 3


@dataclass(slots=True)
class LoggingConfig:
    """
    LoggingConfig
    """

    level: str = "INFO"
    # logger name -> level, loggers are named after the class, e.g., "ClosingSchedulerService"
    loggers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class AuctionHouseConfig:
    """
    AuctionHouseConfig
    """

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        if self.database.lock_timeout < 0:
            raise ValueError("[database] lock_timeout must not be negative")
        if self.scheduler.sweep_interval <= 0:
            raise ValueError("[scheduler] sweep_interval must be positive")
        if self.scheduler.batch_size <= 0:
            raise ValueError("[scheduler] batch_size must be greater than zero")
        if self.notifications.max_attempts <= 0:
            raise ValueError("[notifications] max_attempts must be greater than zero")

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "AuctionHouseConfig":
        """
        Unknown sections and keys raise a TypeError
        """
        return cls(
            database=DatabaseConfig(**config.get("database", {})),
            scheduler=SchedulerConfig(**config.get("scheduler", {})),
            notifications=NotificationsConfig(**config.get("notifications", {})),
            logging=LoggingConfig(**config.get("logging", {})),
        )

    @classmethod
    def from_toml(cls, file: Path) -> "AuctionHouseConfig":
        """
        Loads the config from the specified TOML file
        """
        with open(file, "rb") as config_file:
            config = tomllib.load(config_file)
        unknown_sections = set(config) - {"database", "scheduler", "notifications", "logging"}
        if unknown_sections:
            raise ValueError(f"unknown config sections: {sorted(unknown_sections)}")
        return cls.from_dict(config)

    def to_dict(self) -> dict[str, Any]:
        """
        :return: config as a dict
        """
        return asdict(self)
