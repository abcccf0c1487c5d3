"""
Cloudflare API access.

Public entrypoints: CloudflareClient, DNSRecord
"""

from .client import CloudflareClient
from .models import DNSRecord

__all__ = ["CloudflareClient", "DNSRecord"]
