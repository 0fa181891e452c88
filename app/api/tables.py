from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.tables import TableEnvelopeResponse, TableRecordsResponse, TableSummary
from app.services.tables import RequestParams, TableRegistry

router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("", response_model=list[TableSummary])
def list_tables():
    return [
        TableSummary(table_key=table_key, url=f"{router.prefix}/{table_key}")
        for table_key in TableRegistry.keys()
    ]


@router.get(
    "/{table_key}",
    response_model=TableEnvelopeResponse,
    response_model_by_alias=True,
)
def get_table(
    table_key: str,
    request: Request,
    db: Session = Depends(get_db),
):
    if not TableRegistry.exists(table_key):
        raise HTTPException(status_code=404, detail="Unregistered tableKey")

    table = TableRegistry.build(table_key, db)
    params = RequestParams.from_query_params(request.query_params)
    return TableEnvelopeResponse(table_key=table_key, **table.to_props(params))


@router.get(
    "/{table_key}/records",
    response_model=TableRecordsResponse,
    response_model_by_alias=True,
)
def get_table_records(
    table_key: str,
    request: Request,
    db: Session = Depends(get_db),
):
    if not TableRegistry.exists(table_key):
        raise HTTPException(status_code=404, detail="Unregistered tableKey")

    table = TableRegistry.build(table_key, db)
    params = RequestParams.from_query_params(request.query_params)
    return TableRecordsResponse(table_key=table_key, **table.get_records(params))
