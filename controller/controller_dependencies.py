# controller/controller_dependencies.py
import threading
from fastapi import Request
from service.allocation_service import AllocationStore


def get_allocation_store(request: Request) -> AllocationStore:
    return request.app.state.allocation_store


def get_allocation_lock(request: Request) -> threading.Lock:
    # One process-wide lock: allocate() on a store must be single-flight.
    return request.app.state.allocation_lock
