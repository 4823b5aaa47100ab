"""
Dispatch package for Customer Ingest.

Re-exports the dispatcher interfaces and the concrete dispatchers so callers
can import from `customer_ingest.dispatch` directly.
"""

from customer_ingest.dispatch.abstract import AbstractDispatcher, Dispatcher, RecordHandler
from customer_ingest.dispatch.sequential import SequentialDispatcher
from customer_ingest.dispatch.threaded import ThreadedDispatcher

__all__ = [
    # Abstracts
    "AbstractDispatcher",
    "Dispatcher",
    "RecordHandler",
    # Concrete dispatchers
    "SequentialDispatcher",
    "ThreadedDispatcher",
]
