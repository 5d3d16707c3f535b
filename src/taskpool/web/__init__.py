"""Task pool web server."""
