"""Scrape, merge and sync pipeline for cinema bonus announcements."""
