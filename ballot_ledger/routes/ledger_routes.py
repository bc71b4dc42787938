import logging
from typing import Any, Callable, Dict, NamedTuple

from fastapi import APIRouter, HTTPException, Request

from ballot_ledger.encoding import decode
from ballot_ledger.schemas import InvokeRequest, InvokeResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ledger", tags=["Ledger"])


class Operation(NamedTuple):
    handler: Callable[..., Any]
    arity: int
    writes: bool


def build_operations(contract, assets) -> Dict[str, Operation]:
    """Named operations exposed to ledger clients, keyed by function name."""
    return {
        "InitLedger": Operation(contract.initialize_ledger, 0, True),
        "CreateCandidate": Operation(contract.create_candidate, 3, True),
        "RegisterVoter": Operation(contract.register_voter, 2, True),
        "CastVote": Operation(contract.cast_vote, 3, True),
        "TransferAsset": Operation(assets.transfer_asset, 2, True),
        "ReadAsset": Operation(contract.read_record, 1, False),
        "AssetExists": Operation(assets.asset_exists, 1, False),
        "GetAllAssets": Operation(contract.enumerate_all, 0, False),
        "HasVoted": Operation(contract.has_voted, 1, False),
        "VerifyVoter": Operation(contract.verify_voter_name, 2, False),
        "GetResults": Operation(contract.get_results, 0, False),
        "AuditTallies": Operation(lambda state: contract.audit_tallies(state).to_dict(), 0, False),
    }


def _run(request: Request, body: InvokeRequest, allow_writes: bool) -> InvokeResponse:
    operations = request.app.state.operations
    op = operations.get(body.function)
    if op is None:
        raise HTTPException(status_code=400, detail=f"Unknown function {body.function!r}")
    if op.writes and not allow_writes:
        raise HTTPException(status_code=400, detail=f"{body.function} modifies the ledger, use /ledger/invoke")
    if len(body.args) != op.arity:
        raise HTTPException(
            status_code=400,
            detail=f"{body.function} expects {op.arity} arguments, got {len(body.args)}",
        )

    try:
        result = op.handler(request.app.state.world_state, *body.args)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if isinstance(result, bytes):
        result = result.decode("utf-8", errors="replace")
    return InvokeResponse(function=body.function, result=result)


@router.post("/invoke", response_model=InvokeResponse)
def invoke(request: Request, body: InvokeRequest):
    """Run any named operation, including ones that write to the world state."""
    return _run(request, body, allow_writes=True)


@router.post("/query", response_model=InvokeResponse)
def query(request: Request, body: InvokeRequest):
    """Run a read-only named operation."""
    return _run(request, body, allow_writes=False)


@router.get("/records")
def list_records(request: Request):
    return request.app.state.contract.list_records(request.app.state.world_state)


@router.get("/records/{record_id}")
def read_record(request: Request, record_id: str):
    raw = request.app.state.contract.read_record(request.app.state.world_state, record_id)
    try:
        return decode(raw)
    except ValueError:
        # stored value is not JSON, hand it back as text
        return raw.decode("utf-8", errors="replace")


@router.get("/results")
def get_results(request: Request):
    return {"results": request.app.state.contract.get_results(request.app.state.world_state)}


@router.get("/audit")
def audit(request: Request):
    return request.app.state.contract.audit_tallies(request.app.state.world_state).to_dict()
