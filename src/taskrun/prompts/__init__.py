"""
Prompts — Four-layer prompt assembly.
"""

from taskrun.prompts.preamble import PREAMBLE_TEMPLATE, BASE_RULES
from taskrun.prompts.assembler import (
    LAYER_SEPARATOR,
    PromptAssembler,
    build_seed_message,
    resolve_dynamic_context,
)

__all__ = [
    "PREAMBLE_TEMPLATE",
    "BASE_RULES",
    "LAYER_SEPARATOR",
    "PromptAssembler",
    "build_seed_message",
    "resolve_dynamic_context",
]
