"""Interactive command-line host for chunked transfers."""
