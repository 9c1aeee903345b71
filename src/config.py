from __future__ import annotations

from decimal import Decimal
from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.strategies import CostBasisStrategy

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
DB_FILE = ARTIFACTS_DIR / "crypto_taxes.db"


class AppSettings(BaseSettings):
    strategy: CostBasisStrategy = CostBasisStrategy.FIFO
    tax_rate: Decimal = Decimal("0.19")
    reporting_year: int | None = None
    allow_negative_inventory: bool = False
    db_file: Path = DB_FILE

    model_config = SettingsConfigDict(env_prefix="TAX_", env_file=".env", env_file_encoding="utf-8", extra="ignore")


@cache
def config() -> AppSettings:
    return AppSettings()
