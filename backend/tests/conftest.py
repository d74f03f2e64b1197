import os

# Use in-memory sqlite for tests; must be set before momentum.core.config loads
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["TIMEZONE"] = "UTC"
os.environ.setdefault("LOG_LEVEL", "WARNING")
