# scripts/test/simulate_reservation.py
"""Walk a reservation through the booking protocol against a running backend."""

import argparse
import requests
from datetime import datetime, timedelta

BACKEND_URL = "http://127.0.0.1:8080/api/v1"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def post_reservation(session, payload):
    resp = session.post(f"{BACKEND_URL}/reservations", json=payload, timeout=10)
    print(f"→ status={payload['status']:<16} HTTP {resp.status_code}: {resp.json()}")
    return resp


def simulate(args):
    session = requests.Session()
    if args.api_key:
        session.headers["X-API-Key"] = args.api_key

    begin = datetime.now().replace(microsecond=0) + timedelta(days=args.in_days)
    payload = {
        "id": args.id,
        "customer_id": args.customer,
        "vehicle_id": args.vehicle,
        "begin": begin.strftime(DATETIME_FORMAT),
        "end": (begin + timedelta(hours=args.hours)).strftime(DATETIME_FORMAT),
        "pickup": args.pickup,
        "dropoff": args.dropoff,
        "status": "Inquired",
    }

    resp = post_reservation(session, payload)
    if resp.status_code != 201:
        print("❌ No hold granted, stopping")
        return

    payload["status"] = "Cancelled" if args.cancel else "InquiryConfirmed"
    post_reservation(session, payload)

    resp = session.get(f"{BACKEND_URL}/reservations/{args.id}", timeout=10)
    print(f"✅ Final state → HTTP {resp.status_code}: {resp.json()}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate inquiry and confirmation of a reservation")
    parser.add_argument("--url", default=BACKEND_URL)
    parser.add_argument("--api-key", default=None)
    parser.add_argument("--id", type=int, default=201)
    parser.add_argument("--customer", type=int, default=1)
    parser.add_argument("--vehicle", type=int, default=1001)
    parser.add_argument("--in-days", type=int, default=7)
    parser.add_argument("--hours", type=int, default=4)
    parser.add_argument("--pickup", default="Berlin Hbf")
    parser.add_argument("--dropoff", default="Berlin Hbf")
    parser.add_argument("--cancel", action="store_true", help="cancel instead of confirming the hold")
    args = parser.parse_args()

    BACKEND_URL = args.url.rstrip("/")
    simulate(args)
