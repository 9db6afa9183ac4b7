"""Interpreter configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MAX_DEPTH = 3000

# Host frames used per level of evaluation depth, with headroom for
# builtins that call back into the evaluator.
FRAMES_PER_DEPTH = 10


@dataclass
class ZyConfig:
    """Settings shared by batch and interactive sessions.

    Attributes:
        max_depth: Evaluation depth at which a run is stopped as a stack overflow
        color: Whether diagnostics and REPL output are styled
        args_name: Global name bound to the trailing command-line arguments
        prompt: Interactive prompt
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    color: bool = True
    args_name: str = "args"
    prompt: str = "zy => "

    @classmethod
    def from_env(cls) -> ZyConfig:
        """Create config from environment variables.

        Resolution:
        1. ZY_MAX_DEPTH - evaluation depth limit
        2. NO_COLOR (any value) disables color; otherwise ZY_COLOR=0/false disables it
        3. ZY_ARGS_NAME - name of the arguments list in batch mode
        4. ZY_PROMPT - interactive prompt
        """
        config = cls()

        max_depth = os.environ.get("ZY_MAX_DEPTH")
        if max_depth:
            try:
                config.max_depth = int(max_depth)
            except ValueError:
                raise ValueError(f"ZY_MAX_DEPTH must be an integer, got {max_depth!r}")

        if "NO_COLOR" in os.environ:
            config.color = False
        elif os.environ.get("ZY_COLOR", "").lower() in ("0", "false", "no", "off"):
            config.color = False

        args_name = os.environ.get("ZY_ARGS_NAME")
        if args_name:
            config.args_name = args_name

        prompt = os.environ.get("ZY_PROMPT")
        if prompt:
            config.prompt = prompt

        return config

    @property
    def recursion_limit(self) -> int:
        """Host recursion limit needed to reach max_depth."""
        return self.max_depth * FRAMES_PER_DEPTH + 1000
