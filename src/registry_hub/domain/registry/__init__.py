"""Registry domain: enterprise numbers, source-code mappings and record models."""
