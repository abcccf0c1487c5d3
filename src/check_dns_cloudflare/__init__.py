"""
Nagios-style check that a hostname's DNS matches its Cloudflare configuration.

Entrypoints live in cli.py (command line) and app.py (HTTP).
"""

__version__ = "0.1.0"
