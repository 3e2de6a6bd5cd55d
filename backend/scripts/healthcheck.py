import os
import sys
import requests
from dotenv import load_dotenv
from sqlalchemy import create_engine, inspect

REQUIRED_TABLES = [
    'products', 'product_variants', 'promotions', 'promotion_conditions',
    'promotion_branches', 'promotion_customer_groups', 'user_customer_groups',
]

def print_status(check_name: str, status: bool, details: str = ""):
    """
    Renders the status of a health system check to the console.

    Args:
        check_name: Human-readable identifier for the check.
        status: Boolean indicating success or failure.
        details: Optional supplementary information (e.g., URLs, table counts).
    """
    color = "\033[92m[OK]\033[0m" if status else "\033[91m[FAIL]\033[0m"
    print(f"{color} {check_name:<30} {details}")

def run_healthcheck():
    """
    Coordinates a verification of the pricing backend environment.

    Validates the .env file, database connectivity and schema, and whether a
    running API instance answers its health endpoint.
    """
    print("\n=== Storefront Pricing Health Verification ===\n")

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env_path = os.path.join(base_dir, ".env")

    # 1. Check .env file (optional; defaults apply without it)
    has_env = os.path.exists(env_path)
    print_status(".env file exists", has_env, env_path if has_env else "using defaults")
    if has_env:
        load_dotenv(env_path)

    # 2. Check Database
    database_url = os.getenv("DATABASE_URL", "sqlite:///storefront.db")
    try:
        engine = create_engine(database_url)
        tables = inspect(engine).get_table_names()
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        print_status("Database schema initialized", not missing,
                     f"Found {len(tables)} tables" if not missing else f"Missing: {', '.join(missing)}")
        if missing:
            sys.exit(1)
    except Exception as e:
        print_status("Database query failed", False, str(e))
        sys.exit(1)

    # 3. Check the running API
    port = os.getenv("PORT", "8000")
    prefix = os.getenv("API_PREFIX", "/api/v1")
    url = f"http://localhost:{port}{prefix}/health"
    try:
        r = requests.get(url, timeout=5)
        print_status("API health endpoint", r.status_code == 200, f"HTTP {r.status_code}")
    except Exception as e:
        print_status("API health endpoint", False, str(e))

    print("\nHealth check completed.")

if __name__ == "__main__":
    run_healthcheck()
