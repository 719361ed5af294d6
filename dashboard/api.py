"""Central API layer for web-first operation."""

from __future__ import annotations

from typing import Any, Dict, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict

from catalog.service import CatalogSession
from core.errors import ConfigError, ExecutionError, ValidationFailure
from execution.relations import DEFAULT_MR_TYPE
from execution.service import MetaTestService

router = APIRouter(prefix="/api/v1", tags=["api-v1"])

_service: Optional[MetaTestService] = None


def get_service() -> MetaTestService:
    global _service
    if _service is None:
        try:
            _service = MetaTestService()
        except ConfigError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _service


class SearchRequest(BaseModel):
    term: str = ""


class RunTestRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: Optional[str] = None
    mr_type: Optional[str] = DEFAULT_MR_TYPE
    source_input: Optional[str] = None


def _raise_validation_error(exc: ValidationFailure) -> NoReturn:
    raise HTTPException(status_code=400, detail={"message": str(exc), "field": exc.field}) from exc


def _require_session(service: MetaTestService, session_id: str) -> CatalogSession:
    session = service.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ── Catalog sessions ──────────────────────────────────────────────────

@router.post("/sessions")
async def create_session(
    seed: bool = True,
    service: MetaTestService = Depends(get_service),
) -> Dict[str, Any]:
    session, result = await service.create_session(seed=seed)
    return {
        "session_id": session.session_id,
        "total": len(session.catalog),
        "models": [d.to_dict() for d in session.catalog],
        "seed": result.to_dict() if result else None,
    }


@router.get("/sessions")
async def list_sessions(service: MetaTestService = Depends(get_service)) -> Dict[str, Any]:
    return {"sessions": service.list_sessions()}


@router.get("/sessions/{session_id}/models")
async def list_models(
    session_id: str,
    grouped: bool = False,
    service: MetaTestService = Depends(get_service),
) -> Dict[str, Any]:
    session = _require_session(service, session_id)
    if grouped:
        groups = {
            label: [d.to_dict() for d in descriptors]
            for label, descriptors in session.catalog.group_by_task().items()
        }
        return {"groups": groups, "total": len(session.catalog)}
    return {"models": [d.to_dict() for d in session.catalog], "total": len(session.catalog)}


@router.post("/sessions/{session_id}/load-more")
async def load_more(session_id: str, service: MetaTestService = Depends(get_service)) -> Dict[str, Any]:
    session = _require_session(service, session_id)
    try:
        result = await session.load_more()
    except ConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {**result.to_dict(), "total": len(session.catalog)}


@router.post("/sessions/{session_id}/search")
async def search(
    session_id: str,
    payload: SearchRequest,
    service: MetaTestService = Depends(get_service),
) -> Dict[str, Any]:
    session = _require_session(service, session_id)
    try:
        result = await session.search(payload.term)
    except ValidationFailure as exc:
        _raise_validation_error(exc)
    return {**result.to_dict(), "total": len(session.catalog)}


@router.delete("/sessions/{session_id}")
async def close_session(session_id: str, service: MetaTestService = Depends(get_service)) -> Dict[str, Any]:
    if not await service.close_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"session_id": session_id, "closed": True}


# ── Tests and analytics ───────────────────────────────────────────────

@router.post("/tests/run")
async def run_test(payload: RunTestRequest, service: MetaTestService = Depends(get_service)) -> Dict[str, Any]:
    try:
        result = await service.run_test(payload.model_id, payload.mr_type, payload.source_input)
    except ValidationFailure as exc:
        _raise_validation_error(exc)
    except ExecutionError as exc:
        raise HTTPException(status_code=502, detail=f"Test failed: {exc}") from exc
    return result.to_dict()


@router.get("/tests/results")
async def list_results(
    model_id: Optional[str] = None,
    mr_type: Optional[str] = None,
    is_violated: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: MetaTestService = Depends(get_service),
) -> Dict[str, Any]:
    return service.get_results(
        model_id=model_id,
        mr_type=mr_type,
        is_violated=is_violated,
        limit=limit,
        offset=offset,
    )


@router.get("/tests/analytics")
async def analytics(
    model_id: Optional[str] = None,
    service: MetaTestService = Depends(get_service),
) -> Dict[str, Any]:
    return service.get_analytics(model_id).to_dict()


@router.get("/tests/summary")
async def summary(
    model_id: Optional[str] = None,
    service: MetaTestService = Depends(get_service),
) -> Dict[str, Any]:
    return service.get_analytics(model_id).summary()


@router.get("/tests/mr-types")
async def mr_types(
    category: Optional[str] = None,
    service: MetaTestService = Depends(get_service),
) -> Dict[str, Any]:
    types = await service.list_mr_types(category)
    return {"mr_types": [mr.model_dump() for mr in types]}
