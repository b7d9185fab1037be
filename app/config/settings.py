# app/config/settings.py
import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.env import get_env_var, get_optional_env_var

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    MONGO_URI: str = Field("mongodb://localhost:27017", description="MongoDB connection URI")
    MONGO_DB: str = Field("shopeasy", description="MongoDB database name")
    RAZORPAY_KEY_ID: Optional[str] = Field(None, description="Razorpay key id; gateway checkout is disabled when unset")
    RAZORPAY_KEY_SECRET: Optional[str] = Field(None, description="Razorpay key secret used for API auth and signatures")
    RAZORPAY_API_URL: str = Field("https://api.razorpay.com/v1", description="Base URL of the Razorpay REST API")
    GATEWAY_TIMEOUT_SECONDS: float = Field(10.0, gt=0, description="Timeout for a single payment gateway call")
    CURRENCY: str = Field("INR", description="ISO currency code for all orders")
    INVOICE_DIR: str = Field("downloads", description="Root directory for generated invoice documents")
    SHOP_NAME: str = Field("ShopEasy", description="Shop name used in invoice headers and filenames")
    SELLER_NAME: str = Field("ShopEasy E-commerce Pvt. Ltd.", description="Legal name of the seller")
    SELLER_ADDRESS: str = Field("123 Digital Mall, Mumbai, Maharashtra 400001", description="Seller postal address")
    SELLER_GSTIN: str = Field("27AABCS1429Q1Z", description="Seller tax registration number")
    SELLER_PHONE: str = Field("+91 22 1234 5678", description="Seller contact phone")
    SELLER_EMAIL: str = Field("support@shopeasy.com", description="Seller support email")
    SELLER_WEBSITE: str = Field("www.shopeasy.com", description="Seller website")
    LOG_FILE: str = Field("app.log", description="File that receives application logs")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def __init__(self, **values):
        """Initialize settings and log the loaded values."""
        super().__init__(**values)
        logger.info("Settings initialized successfully")
        logger.debug(f"Loaded settings: MONGO_URI={self.MONGO_URI}, MONGO_DB={self.MONGO_DB}, "
                     f"RAZORPAY_CONFIGURED={self.gateway_configured}, "
                     f"GATEWAY_TIMEOUT_SECONDS={self.GATEWAY_TIMEOUT_SECONDS}, "
                     f"INVOICE_DIR={self.INVOICE_DIR}")

    @property
    def gateway_configured(self) -> bool:
        """Whether both Razorpay credentials are present."""
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)


def load_settings() -> Settings:
    """Load settings with environment variable validation."""
    try:
        values = {
            "MONGO_URI": get_env_var("MONGO_URI", "mongodb://localhost:27017"),
            "MONGO_DB": get_env_var("MONGO_DB", "shopeasy"),
            "RAZORPAY_KEY_ID": get_optional_env_var("RAZORPAY_KEY_ID"),
            "RAZORPAY_KEY_SECRET": get_optional_env_var("RAZORPAY_KEY_SECRET"),
        }
        settings = Settings(**values)
        return settings
    except ValueError as ve:
        logger.error(f"Validation error loading settings: {str(ve)}", exc_info=True)
        raise
    except Exception as e:
        logger.error(f"Unexpected error loading settings: {str(e)}", exc_info=True)
        raise RuntimeError(f"Failed to load settings: {str(e)}")


settings = load_settings()
