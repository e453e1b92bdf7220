"""Gunicorn configuration for the MatchLens API.

Saga state, the workflow event store and the message bus live in process
memory, so the API runs as a single uvicorn worker.
- max_requests: recycles the worker over time
- no preload_app: the bus consumers are started inside the worker lifespan
"""

import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = 1
worker_class = "uvicorn.workers.UvicornWorker"

# Memory management: restart worker after N requests
max_requests = 1000
max_requests_jitter = 50

# Timeouts
timeout = 120  # Allow long prediction/sync requests
graceful_timeout = 30
keepalive = 5

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
