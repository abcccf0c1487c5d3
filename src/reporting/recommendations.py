class Recommendations:
    _MAP = {
        # Cloudflare API view
        "API_QUERY_FAILED": "The Cloudflare API could not be queried. Check that CLOUDFLARE_API_TOKEN is valid, has Zone:Read and DNS:Read permissions, and that the zone name (--zone) is correct.",
        "NO_API_RECORD": "The zone has no A, AAAA or CNAME record with this exact name. Check for typos, or pass --zone if the hostname lives in a different zone.",
        "MISSING_CONTENT": "An expected value is not published in Cloudflare. Add the record, or update the expected values if the change was intentional.",
        "UNEXPECTED_CONTENT": "Cloudflare publishes a value that was not expected. Remove the stale record or add the value to the expected list.",

        # Live DNS view
        "NO_DNS_ANSWER": "The resolver returned no data for the hostname. Check propagation, the resolver used (--dns-server) and the query type.",
        "DNS_MISMATCH": "Live DNS differs from the expected values. If Cloudflare was just updated, wait for TTLs to expire; otherwise check for a second authoritative provider.",
        "OUTSIDE_TRUSTED_RANGE": "The record is proxied in Cloudflare but resolves outside Cloudflare's address space. The zone may not be delegated to Cloudflare or a resolver is serving stale data.",
        "UNPARSEABLE_ADDRESS": "The resolver returned something that is not an IP address for a proxied hostname (often a CNAME chain leaving Cloudflare).",

        # Informational
        "API_RECORDS_OK": "",
        "DNS_RESULTS_OK": "",
    }

    @classmethod
    def recommend(cls, issue: str) -> str:
        return cls._MAP.get(issue, "")
