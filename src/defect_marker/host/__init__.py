"""Host-Adapter."""

from .navisworks import NavisworksModelProvider, convert_bounding_box, host_config

__all__ = ["NavisworksModelProvider", "convert_bounding_box", "host_config"]
