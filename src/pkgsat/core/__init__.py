"""Core resolution engine: pool, solver, transaction and autoload lookup."""
