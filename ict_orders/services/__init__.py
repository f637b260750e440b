"""Business services.

Importing the package wires the in-process event handlers.
"""

from ict_orders.services.events import ClientProfileUpdated, subscribe
from ict_orders.services.order_service import handle_client_profile_updated

subscribe(ClientProfileUpdated)(handle_client_profile_updated)
