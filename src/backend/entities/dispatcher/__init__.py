"""
Dispatcher - runs the matcher chain and executes the chosen template.
"""

from .clients import DispatcherClients, create_dispatcher, create_dispatcher_clients
from .dispatcher import EXECUTING_STEP, MATCHING_STEP, QueryDispatcher, bind_parameters

__all__ = [
    "EXECUTING_STEP",
    "MATCHING_STEP",
    "DispatcherClients",
    "QueryDispatcher",
    "bind_parameters",
    "create_dispatcher",
    "create_dispatcher_clients",
]
