"""Runtime configuration loaded from the environment (and an optional .env file)."""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

load_dotenv(BASE_DIR / ".env")

# Cadences
ANALYSIS_INTERVAL_MS = 3000
COUNTDOWN_INTERVAL_MS = 1000

# Brushing rules
BRUSHING_REQUIRED_SECONDS = 10
CONFIDENCE_THRESHOLD = 0.4
BRUSHING_LOSS_POLICY = os.getenv("BRUSHING_LOSS_POLICY", "sticky")

# Classifier
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
CLASSIFIER_TIMEOUT_SECONDS = float(os.getenv("CLASSIFIER_TIMEOUT_SECONDS", "15"))
BRUSH_COLORS = os.getenv("BRUSH_COLORS", "GREEN and PURPLE")
TOOTHPASTE_COLORS = os.getenv("TOOTHPASTE_COLORS", "RED and BLUE")

# Frames
FRAME_MAX_SIZE = (640, 480)
FRAME_JPEG_QUALITY = 70
FRAME_MAX_AGE_SECONDS = float(os.getenv("FRAME_MAX_AGE_SECONDS", "5"))

# Reward
DEFAULT_REWARD = os.getenv("REWARD_CONTENT", "https://google.com")
REWARD_MAX_LENGTH = 2048

# Server
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
