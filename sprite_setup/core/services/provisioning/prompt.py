"""
Interactive prompt — ask the operator for one free-text value.

Single-shot: a blank answer is rejected with InvalidInput rather than
re-asked, so a scripted run with no terminal fails fast instead of
looping.
"""

from __future__ import annotations

import logging
from typing import Callable

import click

from sprite_setup.core.config.env_file import SetupConfig
from sprite_setup.core.errors import InvalidInput
from sprite_setup.core.models.step import PromptSpec

logger = logging.getLogger(__name__)

# Reads one line for a prompt message
Reader = Callable[[str], str]


def click_reader(message: str) -> str:
    """Read one line from the terminal (prompt on stderr); empty answers pass through."""
    return click.prompt(message, default="", show_default=False, err=True)


def prompt_value(message: str, *, reader: Reader = click_reader) -> str:
    """Display ``message`` and return the trimmed answer.

    Raises:
        InvalidInput: the answer is empty after trimming.
    """
    answer = (reader(message) or "").strip()
    if not answer:
        raise InvalidInput(f"{message.rstrip(': ')} cannot be empty")
    return answer


def resolve_prompts(
    prompts: list[PromptSpec],
    config: SetupConfig,
    *,
    reader: Reader = click_reader,
    step: str = "",
) -> None:
    """Fill in every prompted variable the environment doesn't already supply."""
    for spec in prompts:
        if config.has(spec.var):
            logger.info("Using %s from environment", spec.var)
            continue
        try:
            value = prompt_value(spec.message, reader=reader)
        except InvalidInput as e:
            e.step = step
            raise
        config.set_value(spec.var, value)
