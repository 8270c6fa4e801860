"""
Load booking data from a JSON fixture into storage.

Used by the CLI to try out slot lookups without a database. Records refer
to hosts by ``user`` (username) and to meeting types by ``meeting_type``
(slug), so fixture files never need to agree on numeric ids.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.entities import Attendee
from ..domain.exceptions import InvalidInputError
from ..services.storage import StorageProtocol

logger = logging.getLogger(__name__)

DEFAULT_FIXTURE = Path(__file__).parent / "sample_booking_data.json"


def _field(record: Dict[str, Any], snake: str, default: Any = None) -> Any:
    """Read a field in snake_case or camelCase."""
    if snake in record:
        return record[snake]
    head, *rest = snake.split("_")
    camel = head + "".join(part.title() for part in rest)
    return record.get(camel, default)


def _parse_datetime(value: str, timezone: str) -> DateTime:
    parsed = pendulum.parse(value, tz=timezone)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed


def load_fixture(path: Optional[Path] = None) -> Dict[str, List[Dict[str, Any]]]:
    """
    Read a fixture file.

    Args:
        path: JSON file; the bundled sample data when omitted

    Returns:
        Mapping of section name to list of raw records

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a JSON object
    """
    data_file = path or DEFAULT_FIXTURE

    if not data_file.exists():
        raise FileNotFoundError(f"Booking data file not found: {data_file}")

    with open(data_file, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {data_file}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Booking data file must contain an object at the root level.")

    return data


async def populate_storage(storage: StorageProtocol, path: Optional[Path] = None) -> None:
    """
    Insert every valid fixture record into ``storage``.

    Records with missing fields or unknown references are skipped with a
    warning.
    """
    data = load_fixture(path)
    user_ids: Dict[str, int] = {}
    user_timezones: Dict[str, str] = {}
    meeting_type_ids: Dict[tuple, int] = {}

    for record in data.get("users", []):
        try:
            user = await storage.create_user(
                username=record["username"],
                email=record["email"],
                name=_field(record, "name"),
                timezone=_field(record, "timezone", "UTC"),
            )
        except KeyError as e:
            logger.warning("Skipping user record without %s", e)
            continue
        user_ids[user.username] = user.id
        user_timezones[user.username] = user.timezone

    for record in data.get("availabilities", []):
        try:
            await storage.create_availability(
                user_id=user_ids[record["user"]],
                day_of_week=_field(record, "day_of_week"),
                start_time=_field(record, "start_time"),
                end_time=_field(record, "end_time"),
            )
        except (KeyError, InvalidInputError) as e:
            logger.warning("Skipping availability record %s: %s", record, e)

    for record in data.get("meeting_types", []):
        try:
            username = record["user"]
            meeting_type = await storage.create_meeting_type(
                user_id=user_ids[username],
                name=record["name"],
                duration=int(record["duration"]),
                slug=record["slug"],
                description=_field(record, "description"),
                location=_field(record, "location"),
            )
        except (KeyError, ValueError) as e:
            logger.warning("Skipping meeting type record %s: %s", record, e)
            continue
        meeting_type_ids[(username, meeting_type.slug)] = meeting_type.id

    for record in data.get("meetings", []):
        try:
            username = record["user"]
            timezone = _field(record, "timezone") or user_timezones[username]
            start_time = _parse_datetime(_field(record, "start_time"), timezone)
            end_time = _parse_datetime(_field(record, "end_time"), timezone)
            if start_time >= end_time:
                raise ValueError(f"start_time {start_time} is not before end_time {end_time}")

            await storage.create_meeting(
                user_id=user_ids[username],
                meeting_type_id=meeting_type_ids[(username, _field(record, "meeting_type"))],
                title=record["title"],
                start_time=start_time,
                end_time=end_time,
                timezone=timezone,
                location=_field(record, "location"),
                attendees=[
                    Attendee(email=a["email"], name=a.get("name"))
                    for a in record.get("attendees", [])
                ],
                confirmed=bool(record.get("confirmed", True)),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping meeting record %s: %s", record, e)

    for record in data.get("calendar_connections", []):
        try:
            await storage.create_calendar_connection(
                user_id=user_ids[record["user"]],
                provider=record["provider"],
                connected=bool(record.get("connected", True)),
            )
        except KeyError as e:
            logger.warning("Skipping calendar connection record %s: %s", record, e)

    logger.info("Loaded booking data for %d host(s)", len(user_ids))
