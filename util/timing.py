# util/timing.py
import time
from contextlib import contextmanager
from typing import Iterator, Any
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "push_dir", user=identity):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."
    Failures are reported as "<name>.failed" with the exception type.
    """
    t0 = time.perf_counter()
    outcome = "done"
    try:
        yield
    except BaseException as exc:
        outcome = "failed"
        kv = {**kv, "err": type(exc).__name__}
        raise
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.%s ms=%d%s", name, outcome, dt_ms, suffix)
