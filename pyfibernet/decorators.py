import functools
import inspect
import logging
import time

log = logging.getLogger(__name__)


# Cache Decorator
# Checks to see whether a cached result exists for the function, and if so, returns it. If not, it calls the
# function and caches the result. The instance must provide apicache, apicachetime and apicacheexpire.
def uses_cache(cache_key, cacheable=None):
    def decorator(func):
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            namedArgs = sig.bind(self, *args, **kwargs).arguments
            force = namedArgs.get('force', False)

            # Allow for dynamic cache keys using an argument to the function
            # e.g. @uses_cache('[args-cache_hint_key]') caches under the value of cache_hint_key
            use_cache_key = cache_key
            if '[args-' in cache_key:
                namedArg = cache_key.split('args-')[1].split(']')[0]
                use_cache_key = cache_key.replace(f'[args-{namedArg}]', str(namedArgs[namedArg]))

            # Check Cache
            if not force and use_cache_key in self.apicachetime:
                if time.perf_counter() - self.apicachetime[use_cache_key] < self.apicacheexpire:
                    log.debug(f"Using Cached {use_cache_key}")
                    return self.apicache[use_cache_key]

            result = func(self, *args, **kwargs)

            # Update Cache
            if result is not None and (cacheable is None or cacheable(result)):
                self.apicachetime[use_cache_key] = time.perf_counter()
                self.apicache[use_cache_key] = result
            return result
        return wrapper
    return decorator
