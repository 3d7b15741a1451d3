from .single_flight import SingleFlightGuard

__all__ = ["SingleFlightGuard"]
