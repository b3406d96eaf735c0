"""Core infrastructure: paths, configuration, run history and theming."""
