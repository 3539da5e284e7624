"""Domain exceptions shared by services, workers and the HTTP layer."""


class StoreUnavailableError(Exception):
    """The subscription store could not be reached (DB down, pool closed, ...)."""


class MetroAPIError(Exception):
    """A WMATA request failed at the HTTP level."""


class ParameterStoreError(Exception):
    """An SSM parameter could not be retrieved."""
