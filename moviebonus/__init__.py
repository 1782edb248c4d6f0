"""moviebonus: scrape, merge and sync movie release and bonus data."""

__version__ = "1.0.0"
