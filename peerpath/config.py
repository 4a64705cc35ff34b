"""
Configuration loader.
Reads settings from .env file and makes them available to the rest of the app.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# XAI API settings. No key means every AI feature is skipped
XAI_API_KEY = os.getenv("XAI_API_KEY")
XAI_BASE_URL = os.getenv("XAI_BASE_URL", "https://api.x.ai/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "grok-3-mini-fast")

# Dashboard: fill each new session's store with the demo campus
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").lower() in ("1", "true", "yes")
