"""
Cache utilities for the loyalty service.

Provides Redis-backed caching with graceful fallback to simple in-memory caching.
Uses Flask-Caching for integration with Flask app.

Only the perk catalog is cached. Attribute vectors and descriptors are never
cached because they change on every action.

Environment Variables:
    REDIS_URL: Redis connection URL (e.g., redis://localhost:6379/0)
              Falls back to simple cache if not set or unavailable.
"""
import os
import logging
from flask_caching import Cache

logger = logging.getLogger(__name__)

# Global cache instance - initialized in init_cache()
cache = Cache()

PERK_CATALOG_KEY = 'perks:active'


def init_cache(app):
    """
    Initialize Flask-Caching with Redis or fallback to simple cache.

    A CACHE_TYPE already set in the app config (e.g. NullCache under
    testing) is respected.

    Args:
        app: Flask application instance

    Returns:
        bool: True if Redis connected, False if using fallback
    """
    if app.config.get('CACHE_TYPE'):
        cache.init_app(app)
        logger.info('[Loyalty] Using configured cache: %s', app.config['CACHE_TYPE'])
        return False

    redis_url = os.getenv('REDIS_URL')

    if redis_url:
        try:
            # Test Redis connection before configuring
            import redis
            r = redis.from_url(redis_url, socket_connect_timeout=2)
            r.ping()

            app.config['CACHE_TYPE'] = 'RedisCache'
            app.config['CACHE_REDIS_URL'] = redis_url
            app.config['CACHE_DEFAULT_TIMEOUT'] = 300
            app.config['CACHE_KEY_PREFIX'] = 'loyalty:'

            cache.init_app(app)
            logger.info('[Loyalty] Redis cache connected: %s', redis_url.split('@')[-1])
            return True

        except Exception as e:
            logger.warning('[Loyalty] Redis unavailable (%s), using simple cache', str(e))

    # Fallback to simple in-memory cache
    app.config['CACHE_TYPE'] = 'SimpleCache'
    app.config['CACHE_DEFAULT_TIMEOUT'] = 300

    cache.init_app(app)
    logger.info('[Loyalty] Using simple in-memory cache (no Redis)')
    return False


def invalidate_perk_catalog():
    """Drop the cached active perk list."""
    cache.delete(PERK_CATALOG_KEY)
