"""SiteCheck command-line interface."""
