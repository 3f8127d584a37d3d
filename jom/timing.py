import contextlib
import logging
import time

import jax

logger = logging.getLogger(__name__)

@contextlib.contextmanager
def timer(label: str, enabled: bool = True):
    """
    Brackets a block with a profiler annotation named `label` and logs its host wall time.

    Work dispatched asynchronously inside the block is not waited for, so the logged
    time is the dispatch time unless the caller blocks on the results.
    """
    if not enabled:
        yield
        return

    ttic = time.perf_counter()
    with jax.profiler.TraceAnnotation(label):
        yield
    ttoc = time.perf_counter()
    logger.debug("%s done (sec): %.3e", label, ttoc - ttic)
