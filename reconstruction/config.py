"""Runtime settings, read from the environment (and a local .env file)."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    log_level: str = "INFO"
    log_dir: str = "logs"
    robinhood_account: str = "Robinhood"
    tasty_account: str = "TastyTrade"
    # 0 or absent = unlimited
    max_rows: int = 0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.getenv("RECON_LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("RECON_LOG_DIR", "logs"),
            robinhood_account=os.getenv("RECON_ROBINHOOD_ACCOUNT", "Robinhood"),
            tasty_account=os.getenv("RECON_TASTY_ACCOUNT", "TastyTrade"),
            max_rows=int(os.getenv("RECON_MAX_ROWS", "0")),
        )

    def account_for(self, broker: str) -> str:
        """Configured account label for a broker name, or '' when none is set."""
        return {
            "robinhood": self.robinhood_account,
            "tastytrade": self.tasty_account,
        }.get(broker, "")
