"""Document parsing, link extraction and fetch transports."""
