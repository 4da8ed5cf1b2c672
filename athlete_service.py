from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional, List, Any
import logging

from database import get_db
from errors import NotFound, ValidationError
import crud

logger = logging.getLogger(__name__)

router = APIRouter()


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ==============================================================================
# Request/Response Models
# ==============================================================================

class AthleteCreateBody(_Camel):
    firebase_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    photo_url: Optional[str] = None


class ProfileBody(_Camel):
    experience: Optional[str] = None
    current_pace: Optional[str] = None
    target_pace: Optional[str] = None
    weekly_mileage: Optional[float] = Field(default=None, ge=0)
    age: Optional[int] = Field(default=None, ge=0, le=120)
    gender: Optional[str] = None
    injury_history: Optional[str] = None
    preferred_days: Optional[int] = Field(default=None, ge=1, le=7)
    preferred_time: Optional[str] = None


class ProfileOut(ProfileBody):
    id: int
    user_id: int


class AthleteOut(_Camel):
    id: int
    firebase_id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    profile: Optional[ProfileOut] = None


class BulkDeleteBody(BaseModel):
    ids: Any = None


class ActivityBody(_Camel):
    user_id: int
    date: Optional[datetime] = None
    activity_type: str = "run"
    distance: Optional[float] = Field(default=None, ge=0)
    duration: Optional[str] = None
    pace: Optional[str] = None
    average_hr: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class ActivityUpdateBody(_Camel):
    date: Optional[datetime] = None
    activity_type: Optional[str] = None
    distance: Optional[float] = Field(default=None, ge=0)
    duration: Optional[str] = None
    pace: Optional[str] = None
    average_hr: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class ActivityOut(_Camel):
    id: int
    user_id: int
    date: datetime
    activity_type: Optional[str] = None
    distance: Optional[float] = None
    duration: Optional[str] = None
    pace: Optional[str] = None
    average_hr: Optional[int] = None
    notes: Optional[str] = None


def _deleted_summary(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "firebaseId": user.firebase_id,
    }


# ==============================================================================
# Athletes
# ==============================================================================

@router.post("/athlete/athleteuser", response_model=AthleteOut, status_code=201)
def find_or_create_athlete(body: AthleteCreateBody, db: Session = Depends(get_db)):
    """
    Create or find the athlete linked to an identity-provider user.
    Called after sign-in.
    """
    user, created = crud.find_or_create_user(
        db,
        firebase_id=body.firebase_id,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        photo_url=body.photo_url
    )
    logger.info(f"Athlete {'created' if created else 'found'}: {user.id} (firebaseId={body.firebase_id})")
    return user


@router.get("/athletes", response_model=List[AthleteOut])
def list_athletes(limit: int = Query(100, ge=1, le=500), db: Session = Depends(get_db)):
    """
    Athletes with their profiles, newest first.
    """
    return crud.get_users(db, limit=limit)


# Registered before /athlete/{user_id} so "bulk" is not parsed as an id
@router.delete("/athlete/bulk")
def bulk_delete_athletes(body: BulkDeleteBody, db: Session = Depends(get_db)):
    """
    Delete several athletes.
    Body: {"ids": [1, 2, 3]}
    """
    ids = body.ids
    if not ids or not isinstance(ids, list) or not all(isinstance(i, int) for i in ids):
        raise ValidationError(
            'Invalid request. Provide an array of athlete IDs in the body: { "ids": [1, 2] }'
        )

    deleted = crud.delete_users(db, ids)
    if not deleted:
        logger.info(f"Bulk delete: no athletes found for {ids}")
        raise NotFound("requestedIds", ids, "No athletes found with provided IDs")

    logger.info(f"Bulk delete: {len(deleted)} athletes deleted")
    return {
        "success": True,
        "message": f"{len(deleted)} athletes deleted successfully",
        "deletedAthletes": [_deleted_summary(u) for u in deleted],
        "requestedCount": len(ids),
        "deletedCount": len(deleted),
    }


@router.get("/athlete/{user_id}", response_model=AthleteOut)
def get_athlete(user_id: int, db: Session = Depends(get_db)):
    user = crud.get_user(db, user_id)
    if not user:
        raise NotFound("athlete", user_id)
    return user


@router.put("/athlete/{user_id}/profile", response_model=ProfileOut)
def update_profile(user_id: int, body: ProfileBody, db: Session = Depends(get_db)):
    """
    Create or update the runner profile used for plan generation.
    Fields left out of the body keep their stored value.
    """
    if not crud.get_user(db, user_id):
        raise NotFound("athlete", user_id)
    return crud.upsert_profile(db, user_id, body.model_dump(exclude_unset=True))


@router.delete("/athlete/email/{email}")
def delete_athlete_by_email(email: str, db: Session = Depends(get_db)):
    user = crud.get_user_by_email(db, email)
    if not user:
        raise NotFound("email", email, "Athlete not found")
    crud.delete_user(db, user)
    logger.info(f"Athlete deleted by email: {email}")
    return {"success": True, "message": "Athlete deleted successfully", "deletedAthlete": _deleted_summary(user)}


@router.delete("/athlete/firebase/{firebase_id}")
def delete_athlete_by_firebase_id(firebase_id: str, db: Session = Depends(get_db)):
    user = crud.get_user_by_firebase_id(db, firebase_id)
    if not user:
        raise NotFound("firebaseId", firebase_id, "Athlete not found")
    crud.delete_user(db, user)
    logger.info(f"Athlete deleted by firebaseId: {firebase_id}")
    return {"success": True, "message": "Athlete deleted successfully", "deletedAthlete": _deleted_summary(user)}


@router.delete("/athlete/{user_id}")
def delete_athlete(user_id: int, db: Session = Depends(get_db)):
    user = crud.get_user(db, user_id)
    if not user:
        raise NotFound("id", user_id, "Athlete not found")
    crud.delete_user(db, user)
    logger.info(f"Athlete deleted: {user_id}")
    return {"success": True, "message": "Athlete deleted successfully", "deletedAthlete": _deleted_summary(user)}


# ==============================================================================
# Activities
# ==============================================================================

@router.post("/activities", response_model=ActivityOut, status_code=201)
def create_activity(body: ActivityBody, db: Session = Depends(get_db)):
    """
    Record a completed run in the athlete's history.
    """
    if not crud.get_user(db, body.user_id):
        raise NotFound("athlete", body.user_id)
    data = body.model_dump(exclude={"user_id"}, exclude_none=True)
    return crud.create_activity(db, body.user_id, data)


@router.get("/activities", response_model=List[ActivityOut])
def list_activities(
    user_id: int = Query(..., alias="userId"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    return crud.get_activities(db, user_id, limit=limit)


@router.get("/activities/{activity_id}", response_model=ActivityOut)
def get_activity(activity_id: int, db: Session = Depends(get_db)):
    activity = crud.get_activity(db, activity_id)
    if not activity:
        raise NotFound("activity", activity_id)
    return activity


@router.put("/activities/{activity_id}", response_model=ActivityOut)
def update_activity(activity_id: int, body: ActivityUpdateBody, db: Session = Depends(get_db)):
    """
    Update a recorded run. Fields left out of the body keep their stored value.
    """
    activity = crud.get_activity(db, activity_id)
    if not activity:
        raise NotFound("activity", activity_id)

    data = body.model_dump(exclude_unset=True)
    if "date" in data and data["date"] is None:
        raise ValidationError("Activity date cannot be empty")
    return crud.update_activity(db, activity, data)


@router.delete("/activities/{activity_id}")
def delete_activity(activity_id: int, db: Session = Depends(get_db)):
    activity = crud.get_activity(db, activity_id)
    if not activity:
        raise NotFound("activity", activity_id)
    crud.delete_activity(db, activity)
    logger.info(f"Activity deleted: {activity_id}")
    return {"success": True, "message": "Activity deleted", "id": activity_id}
