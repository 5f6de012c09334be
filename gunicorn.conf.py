"""
Gunicorn configuration for the loyalty API.

    gunicorn -c gunicorn.conf.py run:app
"""
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"

# Attribute updates are serialized in the database, so any number of
# sync workers (and hosts) can share one store.
workers = int(os.getenv('GUNICORN_WORKERS', '2'))
worker_class = 'sync'
timeout = 60
keepalive = 5

# Logging
accesslog = '-'  # stdout
errorlog = '-'   # stderr
loglevel = os.getenv('LOG_LEVEL', 'info')
capture_output = True

proc_name = 'nft-loyalty'

preload_app = True
graceful_timeout = 30


def on_starting(server):
    server.log.info("Starting NFT loyalty server...")


def on_exit(server):
    server.log.info("NFT loyalty server shutting down...")
