"""Document cache, backlink index and graph walker."""
