"""
Adapters package for the Gem Proxy Service.

Contains the HTTP client wrapper for the upstream registry. Adapters keep
URLs, redirect rules and error mapping to shared errors in one place and
perform no IO outside of explicit calls.
"""

from .rubygems_client import RubygemsClient, relay_headers

__all__ = ["RubygemsClient", "relay_headers"]
