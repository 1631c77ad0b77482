"""RentWatch: rental listing watcher for Japanese real-estate portals."""

__version__ = "0.1.0"
