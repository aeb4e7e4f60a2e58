"""
Post-Deploy Smoke Check.

Validates a running admin console instance:
1. Health Check (Redis reachable, commerce API circuit closed)
2. Fulfillment view for a known order (optional)

Usage:
    python scripts/validate_deployment.py [BASE_URL] [ORDER_ID]
"""

import sys
import httpx

BASE_URL = "http://127.0.0.1:8000"


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"FAILURE: {msg}")
    sys.exit(1)


def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    order_id = sys.argv[2] if len(sys.argv) > 2 else None

    with httpx.Client(base_url=base_url, timeout=10) as client:
        print_step("HEALTH", "Checking /health...")
        try:
            response = client.get("/health")
        except httpx.HTTPError as e:
            fail(f"Health check died: {e}")
        if response.status_code != 200:
            fail(f"/health returned {response.status_code}")
        health = response.json()
        if not health.get("redis"):
            fail("Redis is not reachable; status changes would be refused")
        if health.get("commerce_api_circuit") != "CLOSED":
            fail(f"Commerce API circuit is {health.get('commerce_api_circuit')}")
        print_step("HEALTH", "OK")

        if order_id:
            print_step("FULFILLMENT", f"Loading order {order_id}...")
            response = client.get(f"/v1/orders/{order_id}/fulfillment")
            if response.status_code != 200:
                fail(f"Fulfillment view returned {response.status_code}: {response.text}")
            view = response.json()
            tracking = view.get("tracking")
            status = tracking["status"] if tracking else "no tracking"
            print_step("FULFILLMENT", f"OK ({status})")
            # Leave no session behind
            client.delete(f"/v1/orders/{order_id}/fulfillment/session")

    print("Deployment validated")


if __name__ == "__main__":
    main()
