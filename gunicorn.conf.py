# gunicorn.conf.py
import multiprocessing, os

wsgi_app = "astrocusp.main:app"
bind = f"0.0.0.0:{os.getenv('PORT','5000')}"
workers = int(os.getenv("WEB_CONCURRENCY", max(2, multiprocessing.cpu_count())))
threads = 1
worker_class = "sync"
timeout = 30
graceful_timeout = 10
keepalive = 2
preload_app = True   # load the VSOP87 tables once, before forking
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOGLEVEL", "info")

access_log_format = (
    '%(h)s - "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" '
    'req_id:%({X-Request-ID}i)s rt:%(L)s'
)
