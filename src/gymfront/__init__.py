"""gymfront: async client for the gym tracking service."""

__version__ = "0.1.0"
