"""
Reconciliation of Cloudflare zone records with live DNS.

Public entrypoint: CloudflareDNSCheck
"""

from .reconciler import RecordReconciler
from .tool import CloudflareDNSCheck

__all__ = ["CloudflareDNSCheck", "RecordReconciler"]
