"""binderctl: trading-card binder layout and offline sync core."""

__version__ = "0.4.0"
