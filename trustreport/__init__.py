"""TrustReport: reliability and OCEAN personality report service."""

__version__ = "1.0.0"
