# league_config_routes.py
# Season window used by fixture generation.

from fastapi import APIRouter, Depends
from sqlmodel import Session

from matchday_backend.core.database import get_session
from matchday_backend.models.league_config_model import LeagueConfigUpdate
from matchday_backend.services.league_config_service import (
    get_league_config, reset_league_config, update_league_config
)

router = APIRouter()


@router.get("/")
def read_config(session: Session = Depends(get_session)):
    return {"success": True, "data": get_league_config(session)}


@router.put("/")
def update_config(update: LeagueConfigUpdate, session: Session = Depends(get_session)):
    config = update_league_config(session, update)
    return {"success": True, "data": config, "message": "League configuration updated successfully"}


@router.post("/reset")
def reset_config(session: Session = Depends(get_session)):
    config = reset_league_config(session)
    return {"success": True, "data": config, "message": "League configuration reset successfully"}
