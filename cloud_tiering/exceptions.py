"""Exceptions raised by the simulator."""


class ConfigurationError(ValueError):
    """Fatal setup problem detected before a simulation run starts.

    Raised for invalid fleet layouts (a routed tier with no VMs), undefined
    workload categories and malformed configuration files.
    """
