import logging

from fastapi import APIRouter, Depends, status

from tablebook.api.dependencies import get_store, to_http_exception
from tablebook.api.schemas.responses import reservation_response, table_response
from tablebook.api.schemas.schemas import (
    ReservationsResponse,
    TableCreate,
    TableResponse,
    TablesResponse,
    TableUpdate,
)
from tablebook.domain.codes import parse_record_id
from tablebook.domain.exceptions import TablebookError
from tablebook.domain.pricing import to_money
from tablebook.infrastructure.store import RecordStore

router = APIRouter(tags=["tables"])
logger = logging.getLogger(__name__)


@router.get("/tables", response_model=TablesResponse)
def list_tables(store: RecordStore = Depends(get_store)):
    try:
        tables = store.list_tables()
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return TablesResponse(tables=[table_response(table) for table in tables])


@router.get("/events/{event_id}/tables", response_model=TablesResponse)
def list_event_tables(
    event_id: str,
    available: bool = False,
    store: RecordStore = Depends(get_store),
):
    try:
        event_id = parse_record_id(event_id, "event id")
        store.get_event(event_id)
        tables = store.list_tables_by_event(event_id, available_only=available)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return TablesResponse(tables=[table_response(table) for table in tables])


@router.post("/tables", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
def create_table(request: TableCreate, store: RecordStore = Depends(get_store)):
    try:
        table = store.create_table(
            event_id=parse_record_id(request.event_id, "event id"),
            name=request.name,
            capacity=request.capacity,
            min_spend=to_money(request.min_spend),
            zone=request.zone,
            location_description=request.location_description,
            features=request.features,
        )
    except TablebookError as exc:
        raise to_http_exception(exc) from exc

    logger.info("Table created. table_id=%s event_id=%s", table.id, table.event_id)
    return table_response(table)


@router.get("/tables/{table_id}", response_model=TableResponse)
def get_table(table_id: str, store: RecordStore = Depends(get_store)):
    try:
        return table_response(store.get_table(parse_record_id(table_id, "table id")))
    except TablebookError as exc:
        raise to_http_exception(exc) from exc


@router.put("/tables/{table_id}", response_model=TableResponse)
def update_table(
    table_id: str,
    request: TableUpdate,
    store: RecordStore = Depends(get_store),
):
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    try:
        if changes.get("min_spend") is not None:
            changes["min_spend"] = to_money(changes["min_spend"])
        table_id = parse_record_id(table_id, "table id")
        table = store.update_table(table_id, changes)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc

    logger.info("Table updated. table_id=%s fields=%s", table_id, sorted(changes))
    return table_response(table)


@router.delete("/tables/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_table(table_id: str, store: RecordStore = Depends(get_store)):
    try:
        table_id = parse_record_id(table_id, "table id")
        store.delete_table(table_id)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    logger.info("Table deleted. table_id=%s", table_id)


@router.get("/tables/{table_id}/reservations", response_model=ReservationsResponse)
def list_table_reservations(table_id: str, store: RecordStore = Depends(get_store)):
    try:
        table_id = parse_record_id(table_id, "table id")
        store.get_table(table_id)
        reservations = store.list_reservations_by_table(table_id)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return ReservationsResponse(
        reservations=[reservation_response(reservation) for reservation in reservations]
    )
