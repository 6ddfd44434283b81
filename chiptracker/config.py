"""Application configuration."""
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    """Application configuration loaded from environment variables."""
    
    # Redis (for session snapshots and game history)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    
    # Settlement
    settlement_epsilon: str = os.getenv("SETTLEMENT_EPSILON", "0.01")
    
    # Defaults for new sessions
    default_stack_value: str = os.getenv("DEFAULT_STACK_VALUE", "20")
    default_chips_per_stack: int = int(os.getenv("DEFAULT_CHIPS_PER_STACK", "20"))
    
    # Per-color chip denominations
    chip_value_white: str = os.getenv("CHIP_VALUE_WHITE", "1")
    chip_value_red: str = os.getenv("CHIP_VALUE_RED", "5")
    chip_value_blue: str = os.getenv("CHIP_VALUE_BLUE", "10")
    chip_value_green: str = os.getenv("CHIP_VALUE_GREEN", "25")
    chip_value_black: str = os.getenv("CHIP_VALUE_BLACK", "100")
    
    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


config = Config()
