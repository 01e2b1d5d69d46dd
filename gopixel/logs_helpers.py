import functools
import inspect
import logging


def log_call(*, show_args=True, show_result=False):
    """
    Configurable logging decorator for sync and async callables.

    Args:
        show_args: Log function arguments (default: True)
        show_result: Log return value (default: False)
    """

    def decorator(func):
        logger = logging.getLogger(func.__module__)

        def log_enter(args, kwargs):
            if not logger.isEnabledFor(logging.DEBUG):
                return
            if show_args:
                args_repr = [repr(a) for a in args]
                kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
                logger.debug("-> %s(%s)", func.__qualname__, ", ".join(args_repr + kwargs_repr))
            else:
                logger.debug("-> %s", func.__qualname__)

        def log_exit(result):
            if not logger.isEnabledFor(logging.DEBUG):
                return
            if show_result:
                logger.debug("<- %s => %r", func.__qualname__, result)
            else:
                logger.debug("<- %s", func.__qualname__)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                log_enter(args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    logger.error("✗ %s failed: %s", func.__qualname__, e)
                    raise
                log_exit(result)
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            log_enter(args, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error("✗ %s failed: %s", func.__qualname__, e)
                raise
            log_exit(result)
            return result

        return wrapper

    return decorator
