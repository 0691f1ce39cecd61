"""A modular audio synthesizer built from a graph of signal processors."""

__version__ = "0.1.0"