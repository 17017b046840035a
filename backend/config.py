"""Configuration management for AlgoVision API."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "5000"))
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:5173,http://localhost:3000"
).split(",")

# Model Configuration
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.2"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "4096"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

# History Configuration
HISTORY_MAX_TURNS = int(os.getenv("HISTORY_MAX_TURNS", "5"))
HISTORY_MAX_TOKENS = int(os.getenv("HISTORY_MAX_TOKENS", "6000"))  # tokens

# Failure log (offline diagnosis of fallbacks)
FAILURE_LOG_PATH = os.getenv("FAILURE_LOG_PATH", "logs/pipeline_failures.jsonl")
FAILURE_LOG_ENABLED = ENVIRONMENT != "production"

# Logging Configuration
if LOG_FORMAT == "json":
    from logger import setup_logging
    setup_logging(LOG_LEVEL)
else:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
