import logging

from fastapi import APIRouter, Depends, HTTPException

from cockpit.core.deps import get_bearer_token, get_current_admin
from cockpit.schemas.sql_console import SqlExecuteIn, SqlExecuteOut, SqlGenerateIn, SqlGenerateOut
from cockpit.services.sql_console import SqlServiceClient, SqlServiceError, SqlServiceRejected, get_sql_service

router = APIRouter()

_LOG = logging.getLogger("cockpit.sql_console")


@router.post("/generate", response_model=SqlGenerateOut)
def generate_sql(
    payload: SqlGenerateIn,
    token: str = Depends(get_bearer_token),
    admin: dict = Depends(get_current_admin),
    service: SqlServiceClient = Depends(get_sql_service),
):
    question = payload.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question is required")
    try:
        return SqlGenerateOut(sql=service.generate_sql(question, token=token))
    except SqlServiceRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    except SqlServiceError:
        _LOG.exception("SQL generation failed")
        raise HTTPException(status_code=500, detail="Failed to generate SQL")


@router.post("/execute", response_model=SqlExecuteOut)
def execute_sql(
    payload: SqlExecuteIn,
    token: str = Depends(get_bearer_token),
    admin: dict = Depends(get_current_admin),
    service: SqlServiceClient = Depends(get_sql_service),
):
    sql_query = payload.sql_query.strip()
    if not sql_query:
        raise HTTPException(status_code=400, detail="SQL query is required")
    try:
        return service.execute_sql(sql_query, token=token)
    except SqlServiceRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
    except SqlServiceError:
        _LOG.exception("SQL execution failed")
        raise HTTPException(status_code=500, detail="Failed to execute SQL")
