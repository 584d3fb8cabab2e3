worker_class = "gthread"
# each worker builds its own providers, offline manager and connectivity watch thread;
# with STORAGE_BACKEND=FILE keep a single worker so only one process drains the sync queue
workers = 1
threads = 4  # /status reads are cheap; threads keep /health responsive
bind = "0.0.0.0:8050"
timeout = 60
graceful_timeout = 30
keepalive = 5
forwarded_allow_ips = "10.0.0.0/8,127.0.0.1"

# recycle workers; the sync queue is persisted after every drain
max_requests = 2000
max_requests_jitter = 200

# status endpoints take no bodies or large headers
limit_request_fields = 50
limit_request_field_size = 4096
