#!/usr/bin/env python3
"""Seed script to create tracked bears from a JSON file.

Bears are created out of band by an administrator. The file holds a list of
objects with id, name, initial_latitude, initial_longitude, city, country
and an optional color. Bears whose id already exists are skipped.
"""

import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Bear, SessionLocal, init_db  # noqa: E402

REQUIRED_FIELDS = ("id", "name", "initial_latitude", "initial_longitude", "city", "country")

COORDINATE_RANGES = {"initial_latitude": (-90, 90), "initial_longitude": (-180, 180)}


def parse_coordinate(value, minimum: float, maximum: float):
    """Parse a coordinate, returning None when it is not a number in range."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not minimum <= number <= maximum:
        return None
    return number


def seed_bears(bears_path: str) -> int:
    """Create every bear listed in a JSON file.

    Args:
        bears_path: Path to the JSON file.

    Returns:
        Number of bears created.
    """
    print(f"Seeding bears from {bears_path}...")

    try:
        with open(bears_path, "r", encoding="utf-8") as f:
            bears = json.load(f)
    except FileNotFoundError:
        print(f"Error: Bears file not found at {bears_path}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in bears file: {e}")
        sys.exit(1)

    if not isinstance(bears, list):
        print("Error: Bears file must contain a list")
        sys.exit(1)

    init_db()
    created = 0
    db = SessionLocal()
    try:
        seen = set()
        for entry in bears:
            if not isinstance(entry, dict):
                print(f"  - Skipping entry that is not an object: {entry!r}")
                continue
            missing = [k for k in REQUIRED_FIELDS if entry.get(k) in (None, "")]
            if missing:
                print(f"  - Skipping entry without {', '.join(missing)}: {entry}")
                continue

            coordinates = {
                key: parse_coordinate(entry[key], *bounds)
                for key, bounds in COORDINATE_RANGES.items()
            }
            invalid = [key for key, value in coordinates.items() if value is None]
            if invalid:
                print(f"  - Skipping entry with invalid {', '.join(invalid)}: {entry}")
                continue

            bear_id = str(entry["id"]).strip()
            if bear_id in seen:
                print(f"  - Bear '{bear_id}' appears more than once, skipping repeat")
                continue
            seen.add(bear_id)
            if db.get(Bear, bear_id) is not None:
                print(f"  - Bear '{bear_id}' already exists, skipping")
                continue

            db.add(Bear(
                id=bear_id,
                name=str(entry["name"]),
                city=str(entry["city"]),
                country=str(entry["country"]),
                color=entry.get("color"),
                **coordinates,
            ))
            created += 1
        db.commit()
    finally:
        db.close()

    print(f"Seeding completed: {created} bear(s) created")
    return created


def main():
    """Main entry point for seed script."""
    if len(sys.argv) > 1:
        bears_path = sys.argv[1]
    else:
        script_dir = os.path.dirname(os.path.abspath(__file__))
        bears_path = os.path.join(os.path.dirname(script_dir), "bears.json")

    seed_bears(bears_path)


if __name__ == "__main__":
    main()
