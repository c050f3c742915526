"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""
    
    # Database
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "bookcase")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    
    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
    
    # API
    GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")
    
    # Defaults
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("DEFAULT_MAX_RETRIES", "3"))
    DEFAULT_CACHE_TTL = int(os.getenv("DEFAULT_CACHE_TTL", "3600"))
    DEFAULT_PARALLEL = int(os.getenv("DEFAULT_PARALLEL", "5"))
    
    # Matching and deduplication
    USER_REGION = os.getenv("USER_REGION", "US")
    CORRECTIONS_FILE = os.getenv("CORRECTIONS_FILE")
    DEDUP_POLICY = os.getenv("DEDUP_POLICY", "language,description,thumbnail,published_date")
    
    @property
    def dedup_policy(self):
        """Tie-break rule names in priority order."""
        return tuple(name.strip() for name in self.DEDUP_POLICY.split(",") if name.strip())
