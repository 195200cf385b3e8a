"""j2c: translate a Java-subset kernel and its closure into C-like source."""

__version__ = "0.1.0"
