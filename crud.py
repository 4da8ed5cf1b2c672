from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import models
from datetime import datetime

from errors import ValidationError

# --- User CRUD ---

def _commit_user(db: Session, user: models.User):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ValidationError("Email is already linked to another athlete", details=str(e.orig)) from e
    db.refresh(user)


def find_or_create_user(db: Session, firebase_id: str, email: str = None, first_name: str = None,
                        last_name: str = None, photo_url: str = None):
    """
    Find the athlete linked to an identity-provider subject, creating it on first sign-in.
    Returns (user, created).
    """
    user = db.query(models.User).filter(models.User.firebase_id == firebase_id).first()
    if not user:
        user = models.User(
            firebase_id=firebase_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            photo_url=photo_url
        )
        db.add(user)
        _commit_user(db, user)
        return user, True

    # Update if changed
    changed = False
    for key, value in (("email", email), ("first_name", first_name),
                       ("last_name", last_name), ("photo_url", photo_url)):
        if value and getattr(user, key) != value:
            setattr(user, key, value)
            changed = True
    if changed:
        _commit_user(db, user)
    return user, False


def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_users(db: Session, limit: int = 100):
    return db.query(models.User).order_by(models.User.created_at.desc(), models.User.id.desc()).limit(limit).all()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_firebase_id(db: Session, firebase_id: str):
    return db.query(models.User).filter(models.User.firebase_id == firebase_id).first()


def delete_user(db: Session, user: models.User):
    db.delete(user)
    db.commit()


def delete_users(db: Session, ids: list):
    """
    Delete every user whose id is in `ids`.
    Returns the users that existed (and were deleted).
    """
    existing = db.query(models.User).filter(models.User.id.in_(ids)).all()
    for user in existing:
        db.delete(user)
    db.commit()
    return existing

# --- Profile CRUD ---

def upsert_profile(db: Session, user_id: int, data: dict):
    """
    Inserts or updates the profile of a user.
    Only keys present in `data` are written.
    """
    profile = db.query(models.Profile).filter(models.Profile.user_id == user_id).first()
    if not profile:
        profile = models.Profile(user_id=user_id)
        db.add(profile)

    for key, value in data.items():
        if hasattr(profile, key) and key not in ("id", "user_id"):
            setattr(profile, key, value)

    db.commit()
    db.refresh(profile)
    return profile

# --- Race CRUD ---

def create_race(db: Session, data: dict):
    race = models.Race(**data)
    db.add(race)
    db.commit()
    db.refresh(race)
    return race


def get_race(db: Session, race_id: int):
    return db.query(models.Race).filter(models.Race.id == race_id).first()


def get_races(db: Session, limit: int = 100):
    return db.query(models.Race).order_by(models.Race.date.asc()).limit(limit).all()


def update_race(db: Session, race: models.Race, data: dict):
    """Only keys present in `data` are written."""
    for key, value in data.items():
        if hasattr(race, key) and key != "id":
            setattr(race, key, value)
    db.commit()
    db.refresh(race)
    return race


def delete_race(db: Session, race: models.Race):
    db.delete(race)
    db.commit()

# --- Activity CRUD ---

def create_activity(db: Session, user_id: int, data: dict):
    activity = models.Activity(user_id=user_id, **data)
    if activity.date is None:
        activity.date = datetime.utcnow()
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def get_activities(db: Session, user_id: int, limit: int = 50):
    return db.query(models.Activity).filter(
        models.Activity.user_id == user_id
    ).order_by(models.Activity.date.desc()).limit(limit).all()


def get_activity(db: Session, activity_id: int):
    return db.query(models.Activity).filter(models.Activity.id == activity_id).first()


def update_activity(db: Session, activity: models.Activity, data: dict):
    for key, value in data.items():
        if hasattr(activity, key) and key not in ("id", "user_id"):
            setattr(activity, key, value)
    db.commit()
    db.refresh(activity)
    return activity


def delete_activity(db: Session, activity: models.Activity):
    db.delete(activity)
    db.commit()
