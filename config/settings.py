# config/settings.py
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv() # Load environment variables from .env file

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Raw data resources (local paths or URLs)
STOCK_IDENTIFIERS_CSV = os.getenv("STOCK_IDENTIFIERS_CSV", str(PROJECT_ROOT / "data" / "stock_identifiers.csv"))
STOCK_PRICES_CSV = os.getenv("STOCK_PRICES_CSV", str(PROJECT_ROOT / "data" / "stock_prices.csv"))

# Where prices come from: "csv" or "yfinance"
PRICE_SOURCE = os.getenv("PRICE_SOURCE", "csv").strip().lower()
# First day of history downloaded when PRICE_SOURCE is yfinance
YFINANCE_HISTORY_START = os.getenv("YFINANCE_HISTORY_START", "2020-01-01")

# Symbols offered by the form (comma-separated)
_all_symbols_env = os.getenv("ALL_SYMBOLS", "AAPL,GOOG,MSFT,NVDA,SPX")
ALL_SYMBOLS = [s.strip().upper() for s in _all_symbols_env.split(",") if s.strip()]
_default_symbols_env = os.getenv("DEFAULT_SYMBOLS", "AAPL,GOOG")
DEFAULT_SYMBOLS = [s.strip().upper() for s in _default_symbols_env.split(",") if s.strip()]

# Form defaults
DEFAULT_START_DATE = os.getenv("DEFAULT_START_DATE", "2025-03-01")
DEFAULT_END_DATE = os.getenv("DEFAULT_END_DATE", "2025-06-30")
DEFAULT_INVESTMENT = float(os.getenv("DEFAULT_INVESTMENT", 10000))

# Concurrent reads/downloads in the loader
LOADER_MAX_WORKERS = int(os.getenv("LOADER_MAX_WORKERS", 5))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
