# models.py
import sqlalchemy
from eventsync.database import metadata

#'users' table
users = sqlalchemy.Table(
    "users",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("username", sqlalchemy.String, unique=True, index=True),
    sqlalchemy.Column("full_name", sqlalchemy.String),
    sqlalchemy.Column("email", sqlalchemy.String, unique=True, index=True),
    sqlalchemy.Column("hashed_password", sqlalchemy.String),
    sqlalchemy.Column("role", sqlalchemy.String, default="user"),
)

#'venues' table, the catalog is maintained outside the booking core
venues = sqlalchemy.Table(
    "venues",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String, primary_key=True),
    sqlalchemy.Column("name", sqlalchemy.String, unique=True),
    sqlalchemy.Column("type", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("capacity", sqlalchemy.Integer),
    sqlalchemy.Column("facilities", sqlalchemy.JSON, default=list),
    sqlalchemy.Column("building", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("floor", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("is_active", sqlalchemy.Boolean, default=True),
)

# (venue_id, date, slot_key) -> request_id
occupancy = sqlalchemy.Table(
    "occupancy",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.Integer, primary_key=True),
    sqlalchemy.Column("venue_id", sqlalchemy.String, sqlalchemy.ForeignKey("venues.id"), index=True),
    sqlalchemy.Column("date", sqlalchemy.String(10), index=True),
    sqlalchemy.Column("slot_key", sqlalchemy.String(11)),
    sqlalchemy.Column("start_time", sqlalchemy.String(5)),
    sqlalchemy.Column("end_time", sqlalchemy.String(5)),
    sqlalchemy.Column("occupied", sqlalchemy.Boolean, default=True),
    sqlalchemy.Column("request_id", sqlalchemy.String, nullable=True),
    sqlalchemy.UniqueConstraint("venue_id", "date", "slot_key", name="uq_occupancy_slot"),
)

event_requests = sqlalchemy.Table(
    "event_requests",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String, primary_key=True),
    sqlalchemy.Column("user_id", sqlalchemy.String, index=True),
    sqlalchemy.Column("user_email", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("event_name", sqlalchemy.String),
    sqlalchemy.Column("description", sqlalchemy.Text, nullable=True),
    sqlalchemy.Column("date", sqlalchemy.String(10)),
    sqlalchemy.Column("start_time", sqlalchemy.String(5)),
    sqlalchemy.Column("duration_hours", sqlalchemy.Float),
    sqlalchemy.Column("seats_required", sqlalchemy.Integer),
    sqlalchemy.Column("facilities_required", sqlalchemy.JSON, default=list),
    sqlalchemy.Column("venue_id", sqlalchemy.String, sqlalchemy.ForeignKey("venues.id")),
    sqlalchemy.Column("venue_name", sqlalchemy.String),
    sqlalchemy.Column("slot_key", sqlalchemy.String(11)),
    sqlalchemy.Column("status", sqlalchemy.String, default="pending", index=True),
    sqlalchemy.Column("reviewed_by", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("rejection_reason", sqlalchemy.Text, nullable=True),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True)),
    sqlalchemy.Column("updated_at", sqlalchemy.DateTime(timezone=True)),
)

approved_events = sqlalchemy.Table(
    "approved_events",
    metadata,
    sqlalchemy.Column("id", sqlalchemy.String, primary_key=True),
    sqlalchemy.Column("request_id", sqlalchemy.String, unique=True),
    sqlalchemy.Column("user_id", sqlalchemy.String, index=True),
    sqlalchemy.Column("user_email", sqlalchemy.String, nullable=True),
    sqlalchemy.Column("event_name", sqlalchemy.String),
    sqlalchemy.Column("description", sqlalchemy.Text, nullable=True),
    sqlalchemy.Column("date", sqlalchemy.String(10)),
    sqlalchemy.Column("start_time", sqlalchemy.String(5)),
    sqlalchemy.Column("duration_hours", sqlalchemy.Float),
    sqlalchemy.Column("seats_required", sqlalchemy.Integer),
    sqlalchemy.Column("facilities_required", sqlalchemy.JSON, default=list),
    sqlalchemy.Column("venue_id", sqlalchemy.String, sqlalchemy.ForeignKey("venues.id")),
    sqlalchemy.Column("venue_name", sqlalchemy.String),
    sqlalchemy.Column("slot_key", sqlalchemy.String(11)),
    sqlalchemy.Column("status", sqlalchemy.String, default="approved"),
    sqlalchemy.Column("approved_by", sqlalchemy.String),
    sqlalchemy.Column("approved_at", sqlalchemy.DateTime(timezone=True)),
    sqlalchemy.Column("created_at", sqlalchemy.DateTime(timezone=True)),
    sqlalchemy.Column("calendar_event_id", sqlalchemy.String, nullable=True),
)
