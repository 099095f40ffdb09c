from __future__ import annotations

import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Request, Response, status

from .. import version as svc_version
from ..adapters.execution_client import NodeRpcError
from ..logging import SERVICE_NAME, get_logger

log = get_logger(__name__)
router = APIRouter(tags=["health"])

_PROCESS_START = time.time()


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uptime_seconds() -> float:
    return max(0.0, time.time() - _PROCESS_START)


def _version_blob() -> Dict[str, Any]:
    return {
        "service": SERVICE_NAME,
        "version": svc_version.__version__,
        "git": svc_version.git_describe(),
        "python": {
            "version": "{}.{}.{}".format(*os.sys.version_info[:3]),
            "impl": os.sys.implementation.name,
        },
        "started_at": datetime.fromtimestamp(_PROCESS_START, tz=timezone.utc).isoformat(),
        "now": _utcnow_iso(),
        "uptime_seconds": round(_uptime_seconds(), 3),
    }


async def _check_rpc(client: Any) -> Tuple[bool, Dict[str, Any]]:
    """
    Execution client readiness: a single eth_chainId round-trip.
    """
    info: Dict[str, Any] = {}
    url = getattr(client, "url", None)
    if url:
        info["url"] = url
    probe = getattr(client, "chain_id", None)
    if probe is None:
        info["skipped"] = "client exposes no chain_id probe"
        return True, info
    try:
        info["evmChainId"] = await probe()
        return True, info
    except NodeRpcError as e:
        log.warning("readyz.rpc_failed", error=str(e))
        info["error"] = str(e)
        return False, info


@router.get("/healthz", summary="Liveness probe", response_model=None)
def healthz() -> Dict[str, Any]:
    """
    Liveness probe: always 200 while the process is serving requests.
    """
    return {"status": "ok", **_version_blob()}


@router.get("/version", summary="Service version", response_model=None)
def version(request: Request) -> Dict[str, Any]:
    meta = _version_blob()
    cfg = request.app.state.config
    meta["chainId"] = cfg.chain_id
    meta["chainName"] = cfg.chain_name
    return meta


@router.get("/readyz", summary="Readiness probe", response_model=None)
async def readyz(request: Request, response: Response) -> Dict[str, Any]:
    """
    Readiness probe: verifies the execution client answers JSON-RPC.
    Returns 200 when all checks pass; 503 otherwise.
    """
    checks: Dict[str, Dict[str, Any]] = {}

    ok, info = await _check_rpc(request.app.state.execution_client)
    checks["rpc"] = {"ok": ok, **info}

    response.status_code = status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "ok" if ok else "degraded",
        "now": _utcnow_iso(),
        "uptime_seconds": round(_uptime_seconds(), 3),
        "checks": checks,
    }
