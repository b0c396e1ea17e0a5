"""Live and static-site crawl drivers."""
