# match_report_routes.py
# Post-match reports (team and player statistics of finished fixtures).

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from pydantic import BaseModel

from matchday_backend.core.database import get_session
from matchday_backend.services.match_report import (
    create_match_report, delete_match_report, get_match_report, get_match_report_by_fixture,
    get_team_match_stats, list_match_reports, update_match_report
)
from matchday_backend.models.match_report_model import MatchReportUpdate
from matchday_backend.services.match_store import get_match

router = APIRouter()


class ReportCreate(BaseModel):
    fixture_id: int


@router.get("/")
def list_reports(session: Session = Depends(get_session)):
    return {"success": True, "data": list_match_reports(session)}


@router.post("/", status_code=201)
def create_report(body: ReportCreate, session: Session = Depends(get_session)):
    """Rebuild a report for a finished fixture whose report failed at finish time."""
    report = create_match_report(session, get_match(session, body.fixture_id))
    return {"success": True, "data": report}


@router.get("/fixture/{fixture_id}")
def report_by_fixture(fixture_id: int, session: Session = Depends(get_session)):
    return {"success": True, "data": get_match_report_by_fixture(session, fixture_id)}


@router.get("/stats/team/{club_id}")
def team_stats(club_id: int, limit: int = Query(10, ge=1, le=100), session: Session = Depends(get_session)):
    return {"success": True, "data": get_team_match_stats(session, club_id, limit)}


@router.get("/{report_id}")
def report_by_id(report_id: int, session: Session = Depends(get_session)):
    return {"success": True, "data": get_match_report(session, report_id)}


@router.put("/{report_id}")
def update_report(report_id: int, update: MatchReportUpdate, session: Session = Depends(get_session)):
    return {"success": True, "data": update_match_report(session, report_id, update)}


@router.delete("/{report_id}")
def delete_report(report_id: int, session: Session = Depends(get_session)):
    delete_match_report(session, report_id)
    return {"success": True, "message": "Match data deleted successfully"}
