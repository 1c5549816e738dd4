import multiprocessing
import os

# Sessions live in signed cookies, so any worker can serve any request.
bind = os.getenv("SHEETDESK_BIND", f"0.0.0.0:{os.getenv('PORT', '8000')}")
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.getenv("SHEETDESK_WORKERS", min(multiprocessing.cpu_count() * 2 + 1, 4)))
# Google API calls block the worker for the length of one HTTP round trip
timeout = int(os.getenv("SHEETDESK_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("SHEETDESK_GRACEFUL_TIMEOUT", "20"))
keepalive = int(os.getenv("SHEETDESK_KEEPALIVE", "5"))
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
# OAuth callback URLs are rebuilt from forwarded headers behind a proxy
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")

capture_output = True


def when_ready(server):
    server.log.info("SheetDesk listening on %s with %s workers", bind, workers)


def worker_exit(server, worker):
    server.log.info("Worker exiting", extra={"pid": worker.pid})
