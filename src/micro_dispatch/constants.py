"""Constants shared across the dispatch core."""

# Priorities
DEFAULT_PRIORITY = 50
MIN_PRIORITY = 1
MAX_PRIORITY = 99

# Reserved request attributes set by the router
ID_ATTRIBUTE = "_id"
ROUTE_ATTRIBUTE = "_route"

# Dispatch limits
DEFAULT_MAX_DISPATCH_DEPTH = 32

# Built-in event types
SERVER_REQUEST = "server/request"
SERVER_RESPONSE = "server/response"
REGISTRY_ADD_ENDPOINT = "registry/add-endpoint"
REGISTRY_REMOVE_ENDPOINT = "registry/remove-endpoint"
REGISTRY_ADD_MIDDLEWARE = "registry/add-middleware"
REGISTRY_REMOVE_MIDDLEWARE = "registry/remove-middleware"
REGISTRY_ADD_LISTENER = "registry/add-listener"
REGISTRY_REMOVE_LISTENER = "registry/remove-listener"
