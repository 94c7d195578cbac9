"""
Data Loader Script - posts grades, absences and notifications to the API.

Reads a JSON file shaped like:

    {
      "grades":        [{"student_id": "AB-1234", "subject": "Maths", "score": 15.5}],
      "absences":      [{"student_id": "AB-1234", "date": "2026-10-01", "reason": "Sick"}],
      "notifications": [{"type": "info", "title": "Exams", "message": "...", "target_id": "ALL"}]
    }

and sends every entry to the matching recording endpoint.

Usage:
    python load_data.py records.json                          # Uses default URL
    python load_data.py records.json http://localhost:8000    # Custom API URL
"""

import json
import sys
import os

import httpx

ENDPOINTS = {
    "grades": "/api/grades",
    "absences": "/api/absences",
    "notifications": "/api/notifications",
}


def post_records(client: httpx.Client, api_url: str, kind: str, entries: list) -> tuple:
    """Send each entry of one kind. Returns (sent, failed)."""
    sent = failed = 0
    for entry in entries:
        resp = client.post(f"{api_url}{ENDPOINTS[kind]}", json=entry)
        if resp.is_success:
            sent += 1
        else:
            failed += 1
            print(f"  ❌ {kind}: HTTP {resp.status_code}: {resp.text}")
    return sent, failed


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    data_file = sys.argv[1]
    api_url = sys.argv[2] if len(sys.argv) > 2 else os.getenv("API_URL", "http://localhost:8000")

    if not os.path.exists(data_file):
        print(f"Error: Could not find {data_file}")
        sys.exit(1)

    print(f"Loading data from: {data_file}")
    with open(data_file, 'r', encoding='utf-8') as f:
        records = json.load(f)

    print(f"Sending to: {api_url}")
    print()

    print("=" * 60)
    print("LOAD SUMMARY")
    print("=" * 60)
    with httpx.Client(timeout=30.0) as client:
        for kind in ENDPOINTS:
            entries = records.get(kind, [])
            if not entries:
                continue
            sent, failed = post_records(client, api_url, kind, entries)
            print(f"  {kind:<15} sent: {sent:<5} failed: {failed}")
    print("=" * 60)


if __name__ == "__main__":
    main()
