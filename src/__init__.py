"""toolpack — tool-install layer engine for runtime buildpacks."""

__version__ = "0.1.0"
