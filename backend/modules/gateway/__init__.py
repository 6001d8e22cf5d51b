"""
Remote gateway module.

The single capability boundary over the external auth provider, table store
and change feed.

Public API:
- IRemoteGateway: Interface consumed by the session reconciler and the synchronizer
- Subscription: Listener handle with active and unsubscribe()
- Gateway exceptions: GatewayError, GatewayTimeoutError, SubscriptionFailedError

Implementations live in submodules: supabase_gateway.SupabaseGateway and
memory.InMemoryGateway. factory.create_gateway picks one from settings and
wires the reconciler and feed with the configured timeouts.
"""

from .interfaces import IRemoteGateway, Subscription, AuthEventCallback, DataChangeCallback
from .exceptions import GatewayError, GatewayTimeoutError, SubscriptionFailedError

__all__ = [
    # Interface
    "IRemoteGateway",
    "Subscription",
    "AuthEventCallback",
    "DataChangeCallback",
    # Exceptions
    "GatewayError",
    "GatewayTimeoutError",
    "SubscriptionFailedError",
]
