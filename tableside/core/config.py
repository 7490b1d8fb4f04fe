import os
from decimal import Decimal

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/tableside_db")

# Application Metadata
PROJECT_NAME = "Tableside POS Order Service"
VERSION = "1.0.0"

# Payment gateway (Paystack)
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYSTACK_PROVIDER = "paystack"
GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", 15))
PAYMENT_CHANNELS = ["card", "mobile_money"]
DEFAULT_BANK_COUNTRY = os.getenv("DEFAULT_BANK_COUNTRY", "ghana")
SETTLEMENT_PROVIDER_TYPES = ["nuban", "mobile_money"]

# Platform commission taken from every online payment, as a fraction of the amount
PLATFORM_COMMISSION_RATE = Decimal(os.getenv("PLATFORM_COMMISSION_RATE", "0.10"))

# Partial failure policies: "strict" aborts the order, "lenient" logs and continues
STRICT = "strict"
LENIENT = "lenient"
STOCK_FAILURE_POLICY = os.getenv("STOCK_FAILURE_POLICY", STRICT)
UNAVAILABLE_ITEM_POLICY = os.getenv("UNAVAILABLE_ITEM_POLICY", STRICT)

# Settlement write retries (webhook delivery is at-least-once)
SETTLEMENT_MAX_ATTEMPTS = int(os.getenv("SETTLEMENT_MAX_ATTEMPTS", 3))
SETTLEMENT_BACKOFF_SECONDS = float(os.getenv("SETTLEMENT_BACKOFF_SECONDS", 0.2))

# Outbox Poller Configuration (change notifications for dashboards / kitchen displays)
POLLING_INTERVAL = int(os.getenv("POLLING_INTERVAL", 1)) # Poller checks for new events every N seconds
MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", 5)) # Max retries for an event
BATCH_SIZE = int(os.getenv("BATCH_SIZE", 50)) # How many events to fetch per poll

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
