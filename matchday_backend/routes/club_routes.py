# club_routes.py
# Club listing. Clubs are seeded (see seed/seed_clubs.py); entry forms live elsewhere.

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from matchday_backend.core.database import get_session
from matchday_backend.core.errors import NotFoundError
from matchday_backend.models.club_model import Club

router = APIRouter()


@router.get("/")
def list_clubs(active_only: bool = False, session: Session = Depends(get_session)):
    query = select(Club).order_by(Club.name)
    if active_only:
        query = query.where(Club.is_active == True)  # noqa: E712
    return {"success": True, "data": session.exec(query).all()}


@router.get("/{club_id}")
def get_club(club_id: int, session: Session = Depends(get_session)):
    club = session.get(Club, club_id)
    if not club:
        raise NotFoundError("Club not found")
    return {"success": True, "data": club}
