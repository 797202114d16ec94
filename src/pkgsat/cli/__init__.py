"""Command-line interface for pkgsat."""
