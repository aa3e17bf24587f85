#!/usr/bin/env python3
"""
Trigger one reminder sweep on a running API instance.

Meant for cron when the in-process sweep job is disabled.

Usage:
    python scripts/process_reminders.py
    python scripts/process_reminders.py --api-url https://scheduler.example.com

Environment Variables:
    ADMIN_SECRET: Admin secret configured on the API
    API_URL: Base API URL (default: http://localhost:8000)
"""

import argparse
import os
import sys

import dotenv
import requests

dotenv.load_dotenv()


def process_reminders(api_url: str, admin_secret: str, timeout: int = 60) -> dict:
    """Call the sweep endpoint and return its summary."""
    url = f"{api_url.rstrip('/')}/api/v1/reminders/process"
    headers = {"X-Admin-Secret": admin_secret}

    try:
        response = requests.post(url, headers=headers, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.HTTPError as e:
        print(f"HTTP Error: {e}", file=sys.stderr)
        print(f"Response: {e.response.text}", file=sys.stderr)
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"Request Error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description="Process due appointment reminders")
    parser.add_argument(
        "--api-url",
        default=os.getenv("API_URL", "http://localhost:8000"),
        help="Base API URL (default: $API_URL or http://localhost:8000)",
    )
    parser.add_argument("--timeout", type=int, default=60, help="Request timeout in seconds")
    args = parser.parse_args()

    admin_secret = os.getenv("ADMIN_SECRET")
    if not admin_secret:
        print("Error: ADMIN_SECRET environment variable not set", file=sys.stderr)
        sys.exit(1)

    summary = process_reminders(args.api_url, admin_secret, args.timeout)

    print("✓ Reminder sweep finished")
    print(f"   Due:     {summary['due']}")
    print(f"   Sent:    {summary['sent']}")
    print(f"   Failed:  {summary['failed']}")
    print(f"   Skipped: {summary['skipped']}")


if __name__ == "__main__":
    main()
