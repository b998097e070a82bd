TESTING = True

LOG_LEVEL = "DEBUG"

# Small enough that tests exercise connection reuse.
MAX_POOL_SIZE = 4

SQLITE_BUSY_TIMEOUT = 0.5
