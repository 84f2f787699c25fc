"""Application configuration"""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""
    
    # Application
    APP_NAME: str = "GST Invoice Desk"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    
    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./gst_invoices.db")
    
    # Invoicing defaults
    DEFAULT_COMPANY: str = os.getenv("DEFAULT_COMPANY", "Global Digital Connect")
    
    # PDF rendering
    PDF_HINDI_FONT_PATH: Optional[str] = os.getenv("PDF_HINDI_FONT_PATH")  # TTF with Devanagari glyphs
    
    # Reports
    REPORT_EXPORT_DIR: str = os.getenv("REPORT_EXPORT_DIR", "./exports")
    
    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE")
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
