# gunicorn.conf.py
import multiprocessing, os

bind = f"0.0.0.0:{os.getenv('PORT','5000')}"
wsgi_app = "astromap.main:app"
# grid scoring is CPU-bound; one sync worker per core
workers = int(os.getenv("WEB_CONCURRENCY", max(2, multiprocessing.cpu_count())))
threads = 1
worker_class = "sync"
timeout = int(os.getenv("GUNICORN_TIMEOUT", "180"))
graceful_timeout = 30
keepalive = 2
accesslog = "-"   # stdout
errorlog = "-"    # stderr
loglevel = os.getenv("LOGLEVEL", "info")

access_log_format = (
    '%(h)s - "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" '
    'req_id:%({X-Request-ID}i)s rt:%(L)s'
)
