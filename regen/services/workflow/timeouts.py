from __future__ import annotations

# gh API / CLI operations
GH_TIMEOUT_SECONDS = 60.0

# Local git operations (status, rev-parse, checkout, add, commit, merge)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (fetch, pull, push)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# Generator queries (--version, supported targets)
GENERATOR_QUERY_TIMEOUT_SECONDS = 60.0

# Full generation run
GENERATOR_RUN_TIMEOUT_SECONDS = 60 * 60.0

# Idempotent gh read retry policy; mutations are never retried
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
