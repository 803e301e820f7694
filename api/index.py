"""
Serverless entry point for the XploitArena API
"""
import os
import sys

# Add parent directory to path
parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("PLATFORM_CONFIG_PATH", "/tmp/platform_config.yaml")
os.environ.setdefault("SLA_EVALUATION_INTERVAL", "0")  # Sweep runs from an external cron via POST /sla/sweep

from mangum import Mangum  # noqa: E402

from src.main import app  # noqa: E402

# Lambda handler for ASGI app (disable lifespan for serverless)
handler = Mangum(app, lifespan="off")
