"""
Configuration loader.
Reads settings from .env file and makes them available to the rest of the app.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# XAI API settings
XAI_API_KEY = os.getenv("XAI_API_KEY")
XAI_BASE_URL = os.getenv("XAI_BASE_URL", "https://api.x.ai/v1")

# Model settings
LLM_MODEL = os.getenv("LLM_MODEL", "grok-3-mini-fast")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))

# Live search mode for grounded calls: "on", "auto" or "off"
XAI_SEARCH_MODE = os.getenv("XAI_SEARCH_MODE", "on")

# Chat context budget, in characters (system context + history + new message)
MAX_CONTEXT_CHARS = int(os.getenv("MAX_CONTEXT_CHARS", "60000"))

# How many candidate apps a search returns
SEARCH_RESULT_LIMIT = 3

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
