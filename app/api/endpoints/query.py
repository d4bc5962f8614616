from typing import Annotated

from fastapi import APIRouter, Depends

from app.ai_feature.service import Services, get_services
from app.core import schemas

router = APIRouter(prefix="/query", tags=["Query"])

services_dep = Annotated[Services, Depends(get_services)]


@router.post("/execute", response_model=schemas.QueryResult)
async def execute_query(payload: schemas.SqlQueryRequest, services: services_dep):
    """
    Run a read-only query. Rejections and warehouse errors come back as
    {"success": false, "error": ...} with status 200.
    """
    return await services.executor.execute(payload.sql_query)
