"""Review Tracker: monthly 1-on-1 reviews between developers and managers."""

__version__ = "0.1.0"
