"""Thumbnail processors with different concurrency strategies."""

from .serial import process_batch as serial_process_batch
from .multiprocess import process_batch as multiprocess_process_batch
from .multithread import process_batch as multithread_process_batch
from .asyncio_processor import process_batch as asyncio_process_batch

PROCESSORS = {
    "serial": ("Serial", serial_process_batch),
    "multithread": ("Multithreaded", multithread_process_batch),
    "multiprocess": ("Multiprocess", multiprocess_process_batch),
    "asyncio": ("AsyncIO", asyncio_process_batch),
}

__all__ = [
    "PROCESSORS",
    "serial_process_batch",
    "multiprocess_process_batch",
    "multithread_process_batch",
    "asyncio_process_batch",
]
