# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""FastAPI application hosting the passport registry.

The service is the collaborator around the registry core: it sequences
submitted transactions into blocks, advances the logical clock, persists
committed state, and exposes read-only queries.

**Mutating endpoints**

* ``POST /blocks``: apply a batch of transactions as one block and return
  the per-transaction receipts.
* ``POST /calls/{method}``: convenience wrapper submitting a single
  transaction as its own block.
* ``POST /chain/advance``: mine empty blocks to move the clock forward.

Ledger rejections (unauthorized, already exists, not found) are *not* HTTP
errors: they are returned inside a 200 receipt with ``ok=false`` and the
integer error code. Calls that cannot be decoded return 422.

**Queries**

* ``GET /chain``: next block height, chain tip and owner.
* ``GET /authorities/{identity}``
* ``GET /passports/{passport_id}``: 404 when absent.
* ``GET /passports/{passport_id}/validity``
* ``GET /holders/{holder}/passport``
* ``GET /healthz``

Architecture
------------
The async lifespan context manager handles startup:

1. Configure structured logging.
2. When a database URL is configured, create tables, restore the last
   committed state and register the snapshot commit hook.
3. Yield (application serves requests).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from app.api_models import (
    AdvanceRequest,
    AuthorityResponse,
    BlockRequest,
    BlockResponse,
    CallRequest,
    ChainResponse,
    HolderPassportResponse,
    PassportResponse,
    ValidityResponse,
)
from app.auth import BearerTokenMiddleware
from app.config import (
    HTTP_HOST,
    HTTP_PORT,
    LOG_LEVEL,
    PERSISTENCE_ENABLED,
    REGISTRY_OWNER,
    START_HEIGHT,
    config_fingerprint,
)
from app.logging_config import configure_logging
from app.registry.chain import RegistryNode, get_registry_node, set_registry_node
from app.registry.errors import MalformedCallError
from app.registry.models import Tx

logger = logging.getLogger("passport_registry.main")


# ======================================================================
# Startup
# ======================================================================


def restore_registry_node() -> RegistryNode:
    """Build the process-wide node from the database and wire persistence."""
    from app.db.repository import get_registry_repository
    from app.db.session import init_database

    init_database()
    repository = get_registry_repository()
    state = repository.load(REGISTRY_OWNER)
    if state is None:
        node = RegistryNode(owner=REGISTRY_OWNER, start_height=START_HEIGHT)
        repository.save(node.state)
        logger.info("New registry created: owner=%s height=%d", REGISTRY_OWNER, node.height)
    else:
        node = RegistryNode(state=state)

    node.add_commit_hook(repository.commit_hook)
    set_registry_node(node)
    return node


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(
        "Passport registry starting: HTTP=%s:%d, owner=%s, persistence=%s, log_level=%s",
        HTTP_HOST, HTTP_PORT, REGISTRY_OWNER, PERSISTENCE_ENABLED, LOG_LEVEL,
    )

    if PERSISTENCE_ENABLED:
        restore_registry_node()

    yield

    logger.info("Passport registry shutdown complete")


# ======================================================================
# FastAPI application
# ======================================================================

app = FastAPI(
    title="Passport Registry",
    description=(
        "Credential issuance and lifecycle registry. Authorities issue, "
        "revoke, update and time-box passports bound to a single holder."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(BearerTokenMiddleware)


@app.exception_handler(MalformedCallError)
async def malformed_call_handler(request: Request, exc: MalformedCallError) -> JSONResponse:
    logger.warning("Malformed call rejected: %s", exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def node_dependency() -> RegistryNode:
    return get_registry_node()


# ======================================================================
# Mutating endpoints
# ======================================================================


@app.post("/blocks", response_model=BlockResponse, tags=["chain"])
async def submit_block(
    request: BlockRequest,
    node: RegistryNode = Depends(node_dependency),
) -> BlockResponse:
    """Apply all transactions as one block at the current height."""
    txs = [Tx(method=t.method, args=tuple(t.args), sender=t.sender) for t in request.txs]
    block = await node.mine_block(txs)
    return BlockResponse.from_block(block)


@app.post("/calls/{method}", response_model=BlockResponse, tags=["chain"])
async def submit_call(
    method: str,
    request: CallRequest,
    node: RegistryNode = Depends(node_dependency),
) -> BlockResponse:
    """Apply a single transaction as its own block."""
    block = await node.mine_block([Tx(method=method, args=tuple(request.args), sender=request.sender)])
    return BlockResponse.from_block(block)


@app.post("/chain/advance", response_model=ChainResponse, tags=["chain"])
async def advance_chain(
    request: AdvanceRequest,
    node: RegistryNode = Depends(node_dependency),
) -> ChainResponse:
    """Mine empty blocks, either a count or up to a target height."""
    if (request.blocks is None) == (request.to_height is None):
        raise HTTPException(status_code=422, detail="Specify exactly one of 'blocks' or 'to_height'")

    try:
        if request.blocks is not None:
            await node.mine_empty_blocks(request.blocks)
        else:
            await node.advance_to(request.to_height)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ChainResponse(height=node.height, tip_height=node.tip_height, owner=node.owner)


# ======================================================================
# Queries
# ======================================================================


@app.get("/chain", response_model=ChainResponse, tags=["queries"])
async def get_chain(node: RegistryNode = Depends(node_dependency)) -> ChainResponse:
    return ChainResponse(height=node.height, tip_height=node.tip_height, owner=node.owner)


@app.get("/authorities/{identity:path}", response_model=AuthorityResponse, tags=["queries"])
async def get_authority(
    identity: str,
    node: RegistryNode = Depends(node_dependency),
) -> AuthorityResponse:
    return AuthorityResponse.build(identity, node.call_read_only("get-authority", [identity]))


@app.get("/passports/{passport_id:path}/validity", response_model=ValidityResponse, tags=["queries"])
async def get_passport_validity(
    passport_id: str,
    node: RegistryNode = Depends(node_dependency),
) -> ValidityResponse:
    return ValidityResponse(
        passport_id=passport_id,
        valid=node.call_read_only("is-valid-passport?", [passport_id]),
        height=node.tip_height,
    )


@app.get("/passports/{passport_id:path}", response_model=PassportResponse, tags=["queries"])
async def get_passport(
    passport_id: str,
    node: RegistryNode = Depends(node_dependency),
) -> PassportResponse:
    passport = node.call_read_only("get-passport", [passport_id])
    if passport is None:
        raise HTTPException(status_code=404, detail=f"Passport not found: {passport_id}")
    return PassportResponse.from_passport(passport)


@app.get("/holders/{holder:path}/passport", response_model=HolderPassportResponse, tags=["queries"])
async def get_holder_passport(
    holder: str,
    node: RegistryNode = Depends(node_dependency),
) -> HolderPassportResponse:
    return HolderPassportResponse(
        holder=holder,
        passport_id=node.call_read_only("get-holder-passport", [holder]),
    )


@app.get("/healthz", tags=["health"])
async def healthz(node: RegistryNode = Depends(node_dependency)) -> JSONResponse:
    return JSONResponse(
        content={
            "status": "ok",
            "config": config_fingerprint(),
            "persistence": PERSISTENCE_ENABLED,
            "registry": node.stats(),
        },
        status_code=200,
    )


# ======================================================================
# Application runner (for direct invocation)
# ======================================================================


def main() -> None:
    """Run the service with uvicorn.

    For production deployments, use uvicorn directly::

        uvicorn app.main:app --host 0.0.0.0 --port 8000
    """
    import uvicorn

    configure_logging()
    uvicorn.run(
        "app.main:app",
        host=HTTP_HOST,
        port=HTTP_PORT,
        log_level=LOG_LEVEL.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
