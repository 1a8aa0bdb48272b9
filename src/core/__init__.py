"""Core domain package for telescrape.

Core contains rule loading, scraping, templating, and command routing without
any Telegram or storage-specific code, keeping the business logic portable.
"""
