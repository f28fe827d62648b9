"""Scrape orchestration and speedtest.net collaborators."""
