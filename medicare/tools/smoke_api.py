from __future__ import annotations

import sys
import time

import requests

DEFAULT_BASE_URL = "http://localhost:3000/api"


def main() -> None:
    """
    Smoke test against a running server:
    - GET /api/patients
    - POST /api/patients/test with a fresh email
    Usage: python -m medicare.tools.smoke_api [base_url]
    """
    base_url = (sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BASE_URL).rstrip("/")
    print("Testing MediCare Hospital API\n")

    print("1. GET /api/patients")
    try:
        r = requests.get(f"{base_url}/patients", timeout=10)
        r.raise_for_status()
        print(f"OK: {len(r.json())} patients found")
    except requests.RequestException as e:
        print(f"ERROR: {e}")

    print("\n2. POST /api/patients/test (JSON)")
    try:
        r = requests.post(
            f"{base_url}/patients/test",
            json={
                "name": "Test Patient",
                "email": f"test{int(time.time() * 1000)}@example.com",
                "phone": "9876543210",
            },
            timeout=30,
        )
        data = r.json()
        if r.status_code == 201:
            print(f"OK: {data.get('message')} (id {data.get('id')})")
            print(f"Email sent: {'yes' if data.get('emailSent') else 'no'}")
        else:
            print(f"ERROR {r.status_code}: {data.get('error')}")
    except (requests.RequestException, ValueError) as e:
        print(f"ERROR: {e}")

    print("\nAPI test complete")


if __name__ == "__main__":
    main()
