from __future__ import annotations
from dataclasses import dataclass
import logging

# Longest stretch of text before the cursor that rules get to see
MAX_MATCH = 500

# Stand-in for non-text inline content (images, breaks) in the lookback window
PLACEHOLDER = "\ufffc"


@dataclass
class InputRulesConfig:
    """Configuration for an input rules engine."""
    max_match: int = MAX_MATCH
    placeholder: str = PLACEHOLDER
    verbose: bool = False

    def __post_init__(self):
        if self.max_match < 0:
            raise ValueError(f"max_match must be non-negative, got {self.max_match}")
        if self.verbose:
            configure_logging(verbose=True)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("inputrules").setLevel(logging.DEBUG if verbose else logging.INFO)
