from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "SwishConnect"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    PORT: int = 8080

    # Swish Commerce API (MSS test environment by default)
    SWISH_BASE_URL: str = "https://mss.cpc.getswish.net/swish-cpcapi/api/v2"

    # Merchant PKI
    SWISH_CERT_PATH: str = "./certs/swish_merchant_test_certificate.pem"
    SWISH_KEY_PATH: str = "./certs/swish_merchant_test_certificate.key"
    SWISH_CA_PATH: Optional[str] = None
    SWISH_PASSPHRASE: Optional[str] = None

    # None = no client-side timeout
    SWISH_TIMEOUT_SEC: Optional[float] = None

    # GET /paymentrequests/{id}?wait=true
    POLL_MAX_ATTEMPTS: int = 10
    POLL_INTERVAL_SEC: float = 2.0

    # DB
    DB_FILE: str = "./data/payment_requests.sqlite3"

settings = Settings()
