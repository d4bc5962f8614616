import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.ai_feature.service import Services, get_services
from app.core import schemas

router = APIRouter(prefix="/schema", tags=["Schema"])

services_dep = Annotated[Services, Depends(get_services)]


@router.post("/search", response_model=schemas.SchemaSearchResponse)
async def search_schema(payload: schemas.SchemaSearchRequest, services: services_dep):
    """
    Find the warehouse tables most relevant to a natural-language request,
    ranked by similarity.
    """
    try:
        return await services.retriever.search(
            payload.query,
            limit=payload.limit,
            min_similarity=payload.min_similarity,
        )
    except Exception as error:
        logging.error(f"Schema search failed: {error}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Schema search failed: {error}",
        )
