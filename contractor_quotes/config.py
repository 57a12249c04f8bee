from decimal import Decimal

from pydantic_settings import BaseSettings

from .formatting import FormatSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./quotes.db"
    COMPANY_NAME: str = "Contractor Quotes"
    COMPANY_EMAIL: str = ""
    QUOTE_NUMBER_PREFIX: str = "Q"

    # Quote defaults, used when a new quote does not set its own
    TAX_RATE_DEFAULT: float = 0.0
    MARKUP_DEFAULT: float = 0.0

    # Display formatting
    CURRENCY_SYMBOL: str = "$"
    DECIMAL_PRECISION: int = 2
    USE_PRICE_RANGES: bool = False
    PRICE_RANGE_LOWER_PCT: float = 10.0
    PRICE_RANGE_UPPER_PCT: float = 20.0
    PRICE_RANGE_DISPLAY_FORMAT: str = "percentage"  # 'percentage' | 'dollar_amounts'

    SEED_CATALOG: bool = True

    class Config:
        env_file = ".env"


settings = Settings()


def format_settings(config: Settings = settings) -> FormatSettings:
    """Display settings for the formatter, built from app configuration."""
    return FormatSettings(
        currency_symbol=config.CURRENCY_SYMBOL,
        decimal_precision=config.DECIMAL_PRECISION,
        use_price_ranges=config.USE_PRICE_RANGES,
        price_range_lower_percentage=Decimal(str(config.PRICE_RANGE_LOWER_PCT)),
        price_range_upper_percentage=Decimal(str(config.PRICE_RANGE_UPPER_PCT)),
        price_range_display_format=config.PRICE_RANGE_DISPLAY_FORMAT,
    )
