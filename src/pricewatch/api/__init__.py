"""HTTP API over the on-demand price operations."""
