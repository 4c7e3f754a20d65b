"""Command-line entry points for RegistryHub."""
