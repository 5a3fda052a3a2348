"""
Run an Airtable -> Supabase migration against a running API

Calls the admin migration endpoints for one date window and prints the
streamed progress.  Malformed progress lines are ignored.

Usage:
    python scripts/run_migration.py --token TOKEN --start 2024-01-01 --end 2024-01-31
    python scripts/run_migration.py --token TOKEN --start 2024-01-01 --end 2024-01-31 --phase preview
    python scripts/run_migration.py --token TOKEN --phase backfill --limit 25
"""

import argparse
import json
import sys

import httpx

from app.services.progress import iter_progress_events

DEFAULT_BASE_URL = "http://localhost:8000"
MIGRATION_PATH = "/api/v1/admin/migration"


def print_event(event: dict) -> None:
    if event["type"] == "progress":
        line = f"  {event.get('completed', 0)}/{event.get('total', 0)}"
        if "batchIndex" in event:
            line += f"  batch {event['batchIndex']}/{event.get('batchCount')}"
        if event.get("currentCandidate"):
            line += f"  {event['currentCandidate']}"
        print(line)
    elif event["type"] == "error":
        print(f"  ERROR: {event.get('message')}")
    else:
        print("  complete: " + json.dumps({k: v for k, v in event.items() if k != "type"}))


def run_preview(client: httpx.Client, base_url: str, body: dict) -> None:
    print("\n" + "=" * 50)
    print("Preview")
    print("=" * 50)
    response = client.post(f"{base_url}{MIGRATION_PATH}/preview", json=body)
    response.raise_for_status()
    report = response.json()
    for key in (
        "totalRecords", "validRecords", "recordsWithResume", "recordsWithEmail",
        "newRecords", "duplicateEmails", "duplicateAirtableIds", "estimatedTime",
    ):
        print(f"  {key}: {report.get(key)}")


def run_streamed(client: httpx.Client, base_url: str, phase: str, body: dict) -> int:
    """Stream one phase; returns the number of error events received."""
    print("\n" + "=" * 50)
    print(phase.capitalize())
    print("=" * 50)
    errors = 0
    with client.stream("POST", f"{base_url}{MIGRATION_PATH}/{phase}", json=body) as response:
        if response.status_code == 409:
            print("  Another migration run is in progress")
            return 1
        if response.is_error:
            # Load the body so the error handler can print it
            response.read()
        response.raise_for_status()
        for event in iter_progress_events(response.iter_lines()):
            if event["type"] == "error":
                errors += 1
            print_event(event)
    return errors


def run_backfill(client: httpx.Client, base_url: str, limit: int) -> int:
    response = client.post(
        f"{base_url}{MIGRATION_PATH}/backfill-embeddings", json={"limit": limit}
    )
    response.raise_for_status()
    result = response.json()
    print(json.dumps(result, indent=2))
    return result.get("failed", 0)


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the candidate migration")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    parser.add_argument("--token", required=True, help="Admin access token")
    parser.add_argument("--start", help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="End date (YYYY-MM-DD), inclusive")
    parser.add_argument(
        "--phase",
        choices=["all", "preview", "transfer", "enrich", "backfill"],
        default="all",
    )
    parser.add_argument("--limit", type=int, default=10, help="Backfill batch size")
    parser.add_argument("--timeout", type=float, default=None, help="Read timeout in seconds")
    args = parser.parse_args()

    if args.phase != "backfill" and not (args.start and args.end):
        parser.error("--start and --end are required for this phase")

    headers = {"Authorization": f"Bearer {args.token}"}
    body = {"startDate": args.start, "endDate": args.end}
    timeout = httpx.Timeout(30.0, read=args.timeout)

    errors = 0
    with httpx.Client(headers=headers, timeout=timeout) as client:
        try:
            if args.phase == "backfill":
                return 1 if run_backfill(client, args.base_url, args.limit) else 0
            if args.phase in ("all", "preview"):
                run_preview(client, args.base_url, body)
            if args.phase in ("all", "transfer"):
                errors += run_streamed(client, args.base_url, "transfer", body)
            if args.phase in ("all", "enrich"):
                errors += run_streamed(client, args.base_url, "enrich", body)
        except httpx.HTTPStatusError as e:
            print(f"Error: {e.response.status_code} {e.response.text}")
            return 1
        except httpx.HTTPError as e:
            print(f"Error: {type(e).__name__}: {e}")
            return 1

    print(f"\nDone with {errors} error event(s)")
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
