# util/timing.py
import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator


@contextmanager
def timed(logger: logging.Logger, name: str, level: int = logging.DEBUG, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "history.file.write", bytes=len(data)):
          ...
    Emits one record on exit: "<name>.done ms=<int> key=val ..."
    or "<name>.failed ms=<int> ..." at WARNING when the block raised.
    """
    t0 = time.perf_counter()
    failed = False
    try:
        yield
    except BaseException:
        failed = True
        raise
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        if failed:
            logger.warning("%s.failed ms=%d%s", name, dt_ms, suffix)
        else:
            logger.log(level, "%s.done ms=%d%s", name, dt_ms, suffix)
