from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Date, Boolean, Text, JSON,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_id = Column(String, unique=True, index=True)  # Identity provider subject
    email = Column(String, unique=True, index=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    activities = relationship("Activity", back_populates="user", cascade="all, delete-orphan")
    plans = relationship("TrainingPlan", back_populates="user", cascade="all, delete-orphan")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    experience = Column(String, nullable=True)      # beginner, intermediate, advanced
    current_pace = Column(String, nullable=True)    # e.g. "9:00/mi"
    target_pace = Column(String, nullable=True)
    weekly_mileage = Column(Float, nullable=True)   # miles
    age = Column(Integer, nullable=True)
    gender = Column(String, nullable=True)
    injury_history = Column(Text, nullable=True)
    preferred_days = Column(Integer, nullable=True)  # training days per week
    preferred_time = Column(String, nullable=True)   # morning, evening...

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")


class Race(Base):
    __tablename__ = "races"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    distance = Column(String, nullable=False)       # e.g. "half-marathon"
    date = Column(Date, nullable=False)
    goal_time = Column(String, nullable=True)       # e.g. "2:00:00"
    course_type = Column(String, nullable=True)     # road, trail, track
    elevation_gain = Column(Float, nullable=True)   # feet
    weather_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    plans = relationship("TrainingPlan", back_populates="race")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(DateTime, nullable=False, index=True)
    activity_type = Column(String, default="run")
    distance = Column(Float, nullable=True)     # miles
    duration = Column(String, nullable=True)    # e.g. "45:12"
    pace = Column(String, nullable=True)
    average_hr = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    user = relationship("User", back_populates="activities")


class TrainingPlan(Base):
    __tablename__ = "training_plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    race_id = Column(Integer, ForeignKey("races.id"), nullable=False)

    start_date = Column(Date, nullable=False)
    race_date = Column(Date, nullable=False)
    total_weeks = Column(Integer, nullable=False)
    phase = Column(String(10), nullable=False, default="base")  # base, build, peak, taper

    # Generated payload kept verbatim for audit
    plan_data = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="plans")
    race = relationship("Race", back_populates="plans")
    workouts = relationship(
        "Workout",
        back_populates="training_plan",
        cascade="all, delete-orphan",
        order_by="(Workout.week_number, Workout.sequence)",
    )


class Workout(Base):
    __tablename__ = "workouts"

    id = Column(Integer, primary_key=True, index=True)
    training_plan_id = Column(Integer, ForeignKey("training_plans.id", ondelete="CASCADE"), nullable=False)

    week_number = Column(Integer, nullable=False)   # 1-based
    day_of_week = Column(String, nullable=False)    # label as generated, e.g. "Monday"
    sequence = Column(Integer, nullable=False)      # generation order within the plan

    # Planned
    workout_type = Column(String, nullable=False)   # easy, tempo, interval, long...
    distance = Column(Float, nullable=True)
    pace = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    segments = Column(JSON, default=list)

    # Actuals
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    actual_distance = Column(Float, nullable=True)
    actual_pace = Column(String, nullable=True)
    actual_duration = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    training_plan = relationship("TrainingPlan", back_populates="workouts")

    __table_args__ = (
        UniqueConstraint('training_plan_id', 'week_number', 'day_of_week', name='uq_workout_plan_week_day'),
        Index('ix_workout_plan_order', 'training_plan_id', 'week_number', 'sequence'),
    )
