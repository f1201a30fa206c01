import os

# Store credentials for tests; requests go to mock transports or in-memory repos
os.environ.setdefault("STORE_URL", "https://store.test")
os.environ.setdefault("STORE_ANON_KEY", "anon-test-key")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
