"""BrandBoost Studio: project, billing and client-portal backend for a branding agency."""

__version__ = "0.1.0"
