"""HTTP proxy that keeps the 1inch credential server-side."""
