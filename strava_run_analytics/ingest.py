"""Conversion of Strava activity JSON into engine Activity records.

Fetching, pagination and authentication stay with the caller; this module
only turns already-downloaded `/athlete/activities` objects into `Activity`.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

from .analysis.activity_filter import parse_local_timestamp, parse_utc_timestamp
from .exceptions import InvalidInputError
from .models import Activity

logger = logging.getLogger(__name__)


def activity_from_strava(data: Dict[str, Any]) -> Activity:
    """Create an Activity from one Strava activity object.

    Raises:
        InvalidInputError: if a required field is missing or malformed
    """
    if not isinstance(data, dict):
        raise InvalidInputError(f"Activity record must be an object, got {type(data).__name__}")
    if data.get("id") is None:
        raise InvalidInputError("Activity without id")
    if data.get("start_date_local") is None:
        raise InvalidInputError(f"Activity {data['id']}: missing start_date_local")

    start_utc = data.get("start_date")
    try:
        return Activity(
            id=int(data["id"]),
            sport_type=data.get("sport_type") or data.get("type") or "",
            distance_m=float(data.get("distance") or 0.0),
            moving_time_s=float(data.get("moving_time") or 0),
            start_local=parse_local_timestamp(data["start_date_local"]),
            name=data.get("name"),
            average_speed=data.get("average_speed"),
            start_utc=parse_utc_timestamp(start_utc) if start_utc else None,
        )
    except InvalidInputError:
        raise
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Activity {data.get('id')}: {e}") from e


def parse_activities(records: Iterable[Dict[str, Any]], strict: bool = False) -> Tuple[List[Activity], int]:
    """Convert a batch of Strava activity objects.

    Malformed records are skipped with a warning unless `strict` is set, in
    which case the first one raises.

    Returns:
        (activities, number of skipped records)
    """
    activities = []
    skipped = 0
    for record in records:
        try:
            activities.append(activity_from_strava(record))
        except InvalidInputError as e:
            if strict:
                raise
            skipped += 1
            logger.warning(f"Skipping malformed activity: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} of {skipped + len(activities)} activity records")
    return activities, skipped


def load_activities(path: Union[str, Path], strict: bool = False) -> List[Activity]:
    """Load activities from a JSON export.

    The file holds either a JSON array of Strava activities or an object with
    an `activities` array.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        payload = json.load(f)

    if isinstance(payload, dict):
        payload = payload.get("activities", [])
    if not isinstance(payload, list):
        raise InvalidInputError(f"{path}: expected a list of activities")

    activities, _ = parse_activities(payload, strict=strict)
    logger.info(f"Loaded {len(activities)} activities from {path}")
    return activities
