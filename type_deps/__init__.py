"""type-deps: type-level dependency analysis for Java source trees."""

__version__ = "0.1.0"
