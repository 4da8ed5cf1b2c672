from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session
import datetime as dt
from datetime import date
from typing import Optional, List
import logging

from database import get_db
from errors import NotFound, ValidationError
from training.schemas import CamelModel, RaceOut
import crud

logger = logging.getLogger(__name__)

router = APIRouter()


class RaceBody(CamelModel):
    name: Optional[str] = None
    distance: str = Field(..., min_length=1)
    date: date
    goal_time: Optional[str] = None
    course_type: Optional[str] = None
    elevation_gain: Optional[float] = Field(default=None, ge=0)
    weather_notes: Optional[str] = None


class RaceUpdateBody(CamelModel):
    name: Optional[str] = None
    distance: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None
    goal_time: Optional[str] = None
    course_type: Optional[str] = None
    elevation_gain: Optional[float] = Field(default=None, ge=0)
    weather_notes: Optional[str] = None


@router.post("", response_model=RaceOut, status_code=201)
def create_race(body: RaceBody, db: Session = Depends(get_db)):
    race = crud.create_race(db, body.model_dump())
    logger.info(f"Race created: {race.id} ({race.distance} on {race.date})")
    return race


@router.get("", response_model=List[RaceOut])
def list_races(limit: int = Query(100, ge=1, le=500), db: Session = Depends(get_db)):
    """
    Races ordered by date.
    """
    return crud.get_races(db, limit=limit)


@router.get("/{race_id}", response_model=RaceOut)
def get_race(race_id: int, db: Session = Depends(get_db)):
    race = crud.get_race(db, race_id)
    if not race:
        raise NotFound("race", race_id)
    return race


@router.put("/{race_id}", response_model=RaceOut)
def update_race(race_id: int, body: RaceUpdateBody, db: Session = Depends(get_db)):
    """
    Update a race. Fields left out of the body keep their stored value.
    Plans keep the race date they were generated for.
    """
    race = crud.get_race(db, race_id)
    if not race:
        raise NotFound("race", race_id)

    data = body.model_dump(exclude_unset=True)
    missing = [key for key in ("distance", "date") if key in data and data[key] is None]
    if missing:
        raise ValidationError(f"Race {', '.join(missing)} cannot be empty")

    race = crud.update_race(db, race, data)
    logger.info(f"Race updated: {race_id} ({', '.join(sorted(data)) or 'no changes'})")
    return race


@router.delete("/{race_id}")
def delete_race(race_id: int, db: Session = Depends(get_db)):
    """
    Delete a race that no training plan references.
    """
    race = crud.get_race(db, race_id)
    if not race:
        raise NotFound("race", race_id)
    if race.plans:
        raise ValidationError(
            "Race is referenced by training plans",
            details={"planIds": [p.id for p in race.plans]}
        )
    crud.delete_race(db, race)
    return {"success": True, "message": "Race deleted", "id": race_id}
