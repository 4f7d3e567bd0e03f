"""
App Discovery backend test suite.

Structure:
- unit/: Fast, isolated unit tests against an in-memory store and canned HTML
- conftest.py: Shared fixtures (fake Supabase client, fake fetcher, configs)
"""
