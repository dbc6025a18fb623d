"""
DocReader Configuration Module
Centralized configuration for the application.
"""

import os
from pathlib import Path

import yaml

# Debug Mode Configuration
DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

# Application Paths
APP_NAME = "DocReader"
APPDATA_DIR = Path(
    os.environ.get('DOCREADER_HOME')
    or Path(os.environ.get('APPDATA', os.path.expanduser('~/.config'))) / APP_NAME
)
LOGS_DIR = APPDATA_DIR / "logs"

# Logging Configuration
LOG_FILE = LOGS_DIR / "processing.log"
LOG_FORMAT = "[%(levelname)s %(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

# Every answered question is appended here (question, answer, timestamp)
QA_LOG_FILE = LOGS_DIR / "docreader_qa.log"

# ============================================================================
# LLM Provider Configuration
# ============================================================================

# OpenAI-compatible chat completions endpoint. Point this at a local server
# (e.g. http://localhost:11434/v1 for Ollama) to run without OpenAI.
OPENAI_API_BASE = os.environ.get('OPENAI_API_BASE', "https://api.openai.com/v1")
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"
LLM_TIMEOUT_SECONDS = float(os.environ.get('DOCREADER_TIMEOUT_SECONDS', '600'))

DEFAULT_MODEL = os.environ.get('DOCREADER_MODEL', "gpt-3.5-turbo")
DEFAULT_TEMPERATURE = 0.0

# Retry policy for transport failures: delay = backoff_base * 2**attempt
DEFAULT_RETRIES = 5
DEFAULT_BACKOFF_BASE = 3.0

# ============================================================================
# Document Chunking
# ============================================================================

DEFAULT_CHUNK_TOKEN_LIMIT = 3000

# Semantic chunking merges a paragraph shorter than this regardless of overlap
SEMANTIC_SHORT_PARAGRAPH_CHARS = 200

# Documents with fewer non-whitespace characters than this are unreadable
MIN_EXTRACTED_CHARS = 20

# ============================================================================
# Strategy Budgets
# ============================================================================

# Tokens held back from the context window for the retrieval prompts
RETRIEVAL_RESERVE_TOKENS = 1000

# Safety margin subtracted from each chunk-query budget
CHUNK_SAFETY_MARGIN_TOKENS = 50

HIERARCHICAL_SUMMARY_MAX_TOKENS = 512
HIERARCHICAL_ANSWER_MAX_TOKENS = 1024
REFINE_MAX_TOKENS = 1024

# Refinement pulls context windows around the longest answer words
REFINE_MAX_KEYWORDS = 5
REFINE_MAX_SNIPPETS = 5
REFINE_WINDOW_CHARS = 300
REFINE_MIN_KEYWORD_CHARS = 5

NOT_FOUND_ANSWER = "The answer to the question was not found in the provided document."
MULTIPASS_DIVIDER = "\n\n---\n\n"

# ============================================================================
# Parallel Processing Configuration
# ============================================================================
# Chunk-level LLM calls are I/O bound; the cap keeps provider rate limits sane.
# Set DOCREADER_MAX_WORKERS to override auto-detection (range 1-8).

_user_workers = os.environ.get('DOCREADER_MAX_WORKERS')
if _user_workers:
    PARALLEL_MAX_WORKERS = max(1, min(8, int(_user_workers)))
else:
    PARALLEL_MAX_WORKERS = min(os.cpu_count() or 4, 4)

# ============================================================================
# YAML Settings (optional strategy defaults)
# ============================================================================

READER_SETTINGS_FILE = Path(__file__).parent / "reader.yaml"
READER_SETTINGS = {}

# Keys that may appear under `strategy:` in reader.yaml
STRATEGY_SETTING_KEYS = (
    'model',
    'temperature',
    'max_tokens',
    'presence_penalty',
    'frequency_penalty',
    'retries',
    'backoff_base',
)


def load_reader_settings(settings_path: Path | None = None) -> dict:
    """
    Load reader settings from a YAML file.

        settings_path: Path to the YAML file. Defaults to the package's reader.yaml.
        settings_path: Path to the YAML file. Defaults to the reader.yaml shipped in the package.

    Returns:
        The parsed settings dictionary (empty if the file is missing).
    """
    global READER_SETTINGS
    path = Path(settings_path) if settings_path else READER_SETTINGS_FILE
    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        if DEBUG_MODE:
            from docreader.logging_config import debug_log
            debug_log(f"[Config] Settings file not found at {path}. Using built-in defaults.")
        data = {}
    except yaml.YAMLError as e:
        from docreader.logging_config import warning
        warning(f"[Config] Failed to parse settings file {path}: {e}")
        data = {}

    READER_SETTINGS = data
    return data


def get_strategy_defaults(settings: dict | None = None) -> dict:
    """
    Return strategy defaults from the settings, filtered to known keys.

    Args:
        settings: Parsed settings dict. Uses the loaded settings when None.

    Returns:
        Dict of strategy option overrides (possibly empty).
    """
    if settings is None:
        settings = READER_SETTINGS
    strategy = settings.get('strategy') or {}
    return {key: value for key, value in strategy.items() if key in STRATEGY_SETTING_KEYS}


def get_default_modes(settings: dict | None = None) -> list[str]:
    """Return the default reading modes listed in the settings."""
    if settings is None:
        settings = READER_SETTINGS
    return list(settings.get('default_modes') or ["Retrieval"])


# Load settings on module import
load_reader_settings()
