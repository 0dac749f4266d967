# Bind & workers
bind = "0.0.0.0:8000"
# Rate-limit tables, the click queue and the scheduler live in process memory:
# one worker, concurrency through threads.
workers = 1
threads = 8
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr (collected by Docker)
accesslog = "-"
errorlog = "-"
loglevel = "info"  # override with env LOG_LEVEL

# Trust proxy headers
forwarded_allow_ips = "*"
proxy_protocol = False

wsgi_app = "shortlink:create_app()"
