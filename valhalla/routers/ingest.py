"""Ingestion router: persists proxy traffic records into Valhalla.

POST  /v1/requests              -- insert a request row
POST  /v1/responses             -- insert a placeholder response row
PATCH /v1/responses/{id}        -- fill in a response once the upstream call completes
PUT   /v1/feedback              -- upsert the rating for a response (last write wins)

A failed write returns 503 with the client's error label; the service keeps running.
"""

import uuid

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from valhalla.client import QueryResult
from valhalla.dependencies import Valhalla
from valhalla.result import Err, Result
from valhalla.schemas.records import ValhallaFeedback, ValhallaRequest, ValhallaResponse

router = APIRouter(prefix="/v1", tags=["ingest"])


class WriteResponse(BaseModel):
    status: str = "ok"
    rowcount: int


def _written(result: Result[QueryResult]) -> QueryResult:
    if isinstance(result, Err):
        raise HTTPException(status_code=503, detail=result.error)
    return result.value


@router.post("/requests", response_model=WriteResponse, status_code=201)
async def ingest_request(body: ValhallaRequest, db: Valhalla) -> WriteResponse:
    outcome = _written(await db.insert_request(body))
    return WriteResponse(rowcount=outcome.rowcount)


@router.post("/responses", response_model=WriteResponse, status_code=201)
async def ingest_response(body: ValhallaResponse, db: Valhalla) -> WriteResponse:
    outcome = _written(await db.insert_response(body))
    return WriteResponse(rowcount=outcome.rowcount)


@router.patch("/responses/{response_id}", response_model=WriteResponse)
async def complete_response(
    response_id: uuid.UUID, body: ValhallaResponse, db: Valhalla
) -> WriteResponse:
    """Apply the completed upstream call to an existing response row.

    The path id wins over any id in the body.
    """
    response = body.model_copy(update={"id": response_id})
    outcome = _written(await db.update_response(response))
    if outcome.rowcount == 0:
        raise HTTPException(status_code=404, detail=f"Response {response_id} not found")
    return WriteResponse(rowcount=outcome.rowcount)


@router.put("/feedback", response_model=WriteResponse)
async def submit_feedback(body: ValhallaFeedback, db: Valhalla) -> WriteResponse:
    outcome = _written(await db.upsert_feedback(body))
    return WriteResponse(rowcount=outcome.rowcount)
