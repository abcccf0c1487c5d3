from functools import lru_cache
from typing import List, Optional

# FastAPI creates the app object and defines the different routes
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from check_dns_cloudflare import __version__
from check_dns_cloudflare.config import Settings, build_check
from check_dns_cloudflare.errors import ConfigurationError, ResolutionError, UpstreamError
from reconcile.tool import CloudflareDNSCheck

# input validation
from reporting.targets import InvalidTarget, clean_expected, require_hostname, require_query_type

# Shape the check result into something the user can see
from reporting.assembler import Assemble

app = FastAPI(title="Cloudflare DNS Checker")
assembler = Assemble()


# One check (and therefore one cache store + API client) per process.
@lru_cache(maxsize=1)
def get_check() -> CloudflareDNSCheck:
    try:
        return build_check(Settings.from_env())
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))


@lru_cache(maxsize=1)
def get_dns_check() -> CloudflareDNSCheck:
    # live DNS only: no token and no cache location needed
    return build_check(Settings.from_env(), only_dns=True)


def select_check(only_dns: bool = False) -> CloudflareDNSCheck:
    return get_dns_check() if only_dns else get_check()


@app.get("/health")
def health():
    return {"ok": True}


# Check a hostname
@app.get("/check")
def check(
    hostname: str = Query(..., min_length=1, max_length=253),
    expected: Optional[List[str]] = Query(None),
    querytype: Optional[str] = Query(None, max_length=16),
    zone: Optional[str] = Query(None, max_length=253),
    dns_server: Optional[str] = Query(None, max_length=255),
    only_api: bool = False,
    only_dns: bool = False,
    tool: CloudflareDNSCheck = Depends(select_check),
):
    # Validate + normalize input
    try:
        hostname = require_hostname(hostname)
        qtype = require_query_type(querytype)
        zone = require_hostname(zone) if zone else None
    except InvalidTarget as e:
        raise HTTPException(status_code=400, detail=str(e))
    if only_api and (only_dns or dns_server):
        raise HTTPException(status_code=400, detail="Cannot use DNS options with only_api")

    try:
        result = tool.check_host(
            hostname,
            expected=clean_expected(expected),
            query_type=qtype,
            zone=zone,
            dns_server=dns_server,
            only_api=only_api,
            only_dns=only_dns,
        )
    except (UpstreamError, ResolutionError) as e:
        raise HTTPException(status_code=502, detail=str(e))

    response = assembler.build(
        target=hostname,
        result=result,
        meta={"version": __version__, "source": "api"},
    )
    return JSONResponse(content=response)
