import logging
import os
from typing import Any, Dict

import yaml
from aiohttp import ClientConnectionError, ServerDisconnectedError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Connection-level errors that are safe to retry.
# Relay sends are never wrapped with this: they get exactly one retry, and
# only after a relay webhook is recreated.
RETRYABLE_ERRORS = (
    ClientConnectionError,  # Connection reset by peer, refused, etc.
    ServerDisconnectedError,
    ConnectionError,
)

retry_on_network_error = retry(
    stop=stop_after_attempt(3),  # 3 attempts total (1 initial + 2 retries)
    wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
    retry=retry_if_exception_type(RETRYABLE_ERRORS),
    reraise=True,  # Re-raise the last exception if all retries fail
    before_sleep=lambda retry_state: logger.info(
        f"Retryable error on attempt {retry_state.attempt_number}/3: "
        f"{retry_state.outcome.exception() if retry_state.outcome else 'Unknown error'}. Retrying..."
    ),
)


def load_config(path: str | None = None) -> Dict[str, Any]:
    """
    Load config.yaml.

    The path comes from the argument, then the CONFIG_PATH environment
    variable, then config.yaml in the working directory. A missing file
    yields an empty config so defaults apply.
    """
    path = path or os.getenv("CONFIG_PATH", "config.yaml")
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Config file {path} not found, using defaults")
        return {}
    logger.debug("Configuration loaded successfully")
    return config


def remove_lines_to_fit_len(text: str, max_len: int) -> str:
    """
    Drop lines from the middle of the text until it fits max_len.

    Args:
        text (str): Input text
        max_len (int): Maximum length

    Returns:
        str: Shortened text
    """
    splitted = text.split("\n")

    while len(text) > max_len - len("...\n") and len(splitted) > 2:
        half = len(splitted) // 2
        text = "\n".join(splitted[:half] + ["..."] + splitted[half + 1 :])
        splitted = splitted[:half] + splitted[half + 1 :]

    if len(text) > max_len:
        text = text[: max_len - len("...")] + "..."

    return text
