#!/usr/bin/env python3
import requests
import json
import os
import sys
import logging

# Setup logging
LOG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
os.makedirs(LOG_DIR, exist_ok=True)
LOG_FILE = os.path.join(LOG_DIR, "demo_output.log")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(LOG_FILE),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

BASE_URL = os.environ.get("PRICING_BASE_URL", "http://localhost:8000/api/v1")

# (title, payload, expected status) against the catalog from seed_demo.py
DEMO_CARTS = [
    ("A. Product combo", {"items": [{"variantId": 1, "quantity": 2}]}, 200),
    ("B. Buy 2 get 1 gift", {"items": [{"variantId": 10, "quantity": 2}, {"variantId": 11, "quantity": 1}]}, 200),
    ("C. Gift missing -> suggestion", {"items": [{"variantId": 20, "quantity": 2}]}, 200),
    ("D. Specific product coupon", {"items": [{"variantId": 2, "quantity": 1}], "promotionCode": "SAVE20"}, 200),
    ("E. Coupon stacked on combo", {"items": [{"variantId": 3, "quantity": 1}], "promotionCode": "STACK10"}, 409),
    ("F. Unknown variant", {"items": [{"variantId": 9999, "quantity": 1}]}, 400),
]

def print_step(step_name: str):
    """
    Renders a highlighted progression step to the console output.

    Args:
        step_name: Description of the current simulation stage.
    """
    logger.info(f"=== {step_name} ===")

def print_result(res: requests.Response, expected: int) -> bool:
    """
    Compares the response status with the expected one and logs a summary.

    Args:
        res: The response object from a requests call.
        expected: HTTP status the demo cart should produce.
    """
    body = json.dumps(res.json(), indent=2)
    if res.status_code == expected:
        logger.info(f"As expected ({res.status_code}): {body[:400]}...")
        return True
    logger.error(f"Unexpected ({res.status_code}, wanted {expected}): {res.text}")
    return False

def run_demo():
    """
    Posts each demo cart to a running server and checks the outcome.

    Requires the API to be running and the demo catalog to be seeded
    (scripts/seed_demo.py).
    """
    ok = True
    for title, payload, expected in DEMO_CARTS:
        print_step(title)
        res = requests.post(f"{BASE_URL}/pricing/calculate", json=payload, timeout=10)
        ok = print_result(res, expected) and ok

    print_step("Running promotions")
    res = requests.get(f"{BASE_URL}/pricing/promotions", timeout=10)
    ok = print_result(res, 200) and ok

    if not ok:
        sys.exit(1)
    logger.info("Demo simulation completed.")

if __name__ == "__main__":
    try:
        run_demo()
    except requests.exceptions.ConnectionError:
        logger.error("Connection Error: Is the backend server running on localhost:8000?")
        sys.exit(1)
