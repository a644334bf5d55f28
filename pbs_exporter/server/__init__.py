"""HTTP server, configuration, and scrape orchestration."""
