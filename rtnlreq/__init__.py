"""Request builders for rtnetlink routes, rules, neighbours and traffic control."""

__version__ = "0.1.0"
__all__ = ["core", "route", "rule", "neighbour", "tc", "tc_filter", "tc_handle"]