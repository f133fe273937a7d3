import unittest
from datetime import timedelta
from pathlib import Path
from tempfile import TemporaryDirectory

from auctionhouse.auctions.config import AuctionHouseConfig


class AuctionHouseConfigTestCase(unittest.TestCase):
    def write_config(self, toml: str) -> Path:
        config_dir = TemporaryDirectory()
        self.addCleanup(config_dir.cleanup)
        config_file = Path(config_dir.name) / "auctionhouse.toml"
        config_file.write_text(toml)
        return config_file

    def test_defaults(self):
        config = AuctionHouseConfig.from_toml(self.write_config(""))
        self.assertEqual("sqlite:///auctionhouse.db", config.database.url)
        self.assertEqual(5.0, config.database.lock_timeout)
        self.assertFalse(config.database.echo)
        self.assertEqual(timedelta(seconds=60), config.scheduler.sweep_interval_timedelta)
        self.assertEqual(100, config.scheduler.batch_size)
        self.assertEqual(3, config.notifications.max_attempts)
        self.assertEqual("INFO", config.logging.level)
        self.assertEqual({}, config.logging.loggers)

    def test_from_toml(self):
        config = AuctionHouseConfig.from_toml(
            self.write_config(
                """
[database]
url = "sqlite:///test.db"
lock_timeout = 2.5
echo = true

[scheduler]
sweep_interval = 0.5
batch_size = 10

[notifications]
max_attempts = 5

[logging]
level = "DEBUG"

[logging.loggers]
CloseExpiredAuctions = "WARNING"
"""
            )
        )
        self.assertEqual("sqlite:///test.db", config.database.url)
        self.assertEqual(2.5, config.database.lock_timeout)
        self.assertTrue(config.database.echo)
        self.assertEqual(
            timedelta(milliseconds=500), config.scheduler.sweep_interval_timedelta
        )
        self.assertEqual(10, config.scheduler.batch_size)
        self.assertEqual(5, config.notifications.max_attempts)
        self.assertEqual("DEBUG", config.logging.level)
        self.assertEqual({"CloseExpiredAuctions": "WARNING"}, config.logging.loggers)

        self.assertEqual(config, AuctionHouseConfig.from_dict(config.to_dict()))

    def test_invalid_config(self):
        invalid_configs = {
            "unknown section": "[foo]\nbar = 1",
            "unknown key": "[database]\nfoo = 1",
            "sweep_interval": "[scheduler]\nsweep_interval = 0",
            "batch_size": "[scheduler]\nbatch_size = 0",
            "max_attempts": "[notifications]\nmax_attempts = 0",
            "lock_timeout": "[database]\nlock_timeout = -1",
        }
        for name, toml in invalid_configs.items():
            with self.subTest(name):
                with self.assertRaises((ValueError, TypeError)):
                    AuctionHouseConfig.from_toml(self.write_config(toml))


if __name__ == "__main__":
    unittest.main()
