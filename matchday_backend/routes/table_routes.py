# table_routes.py
# Read-only league table endpoints plus table initialisation.

from fastapi import APIRouter, Depends
from sqlmodel import Session

from matchday_backend.core.database import get_session
from matchday_backend.services.league_config_service import season_and_name
from matchday_backend.services.league_table import (
    get_current_table, get_table_or_404, initialize_table_with_all_clubs, serialize_table
)

router = APIRouter()


@router.get("/")
def current_table(session: Session = Depends(get_session)):
    """Most recently updated table, or null before any fixtures exist."""
    table = get_current_table(session)
    return {"success": True, "data": serialize_table(session, table) if table else None}


@router.post("/initialize")
def initialize(session: Session = Depends(get_session)):
    season, name = season_and_name(session)
    table = initialize_table_with_all_clubs(session, season, name)
    return {"success": True, "data": serialize_table(session, table)}


@router.get("/{table_id}")
def table_by_id(table_id: int, session: Session = Depends(get_session)):
    return {"success": True, "data": serialize_table(session, get_table_or_404(session, table_id))}
