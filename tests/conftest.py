import os

os.environ.setdefault("FINANCE_AUTH_URL", "https://auth.example.test")
os.environ.setdefault("FINANCE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("FINANCE_DATABASE_URL", "sqlite+pysqlite:///:memory:")
