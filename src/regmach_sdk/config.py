"""
Register Machine SDK - Configuration
====================================

Assembler configuration. Values can come from:
- Default values (defined here)
- Environment variables (``AssemblerConfig.from_env()``)
- Command-line options (see ``regmach_sdk.cli.rmasm``)

Environment variables (all optional):
    REGMACH_CAPACITY: Number of memory cells in the image (positive integer)
    REGMACH_STRICT_LABELS: "1", "true", "yes" or "on" to reject duplicate labels
"""

from dataclasses import dataclass
import logging
import os

from regmach_sdk.cpu import DEFAULT_CAPACITY

logger = logging.getLogger(__name__)

TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass
class AssemblerConfig:
    """
    Configuration for an assembly run.

    Attributes:
        capacity: Number of memory cells in the image (default: 1000)
        strict_labels: Reject a label declared twice instead of letting the
            later declaration win (default: False)
        filename: Virtual filename used in messages for string input
    """

    capacity: int = DEFAULT_CAPACITY
    strict_labels: bool = False
    filename: str = "<input>"

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValueError(f"capacity must be positive, got {self.capacity}")

    @classmethod
    def from_env(cls) -> "AssemblerConfig":
        """
        Create an AssemblerConfig from environment variables.

        Invalid values are logged and ignored.
        """
        config = cls()

        if capacity := os.environ.get("REGMACH_CAPACITY"):
            try:
                value = int(capacity)
                if value <= 0:
                    raise ValueError(capacity)
                config.capacity = value
            except ValueError:
                logger.warning(f"Ignoring invalid REGMACH_CAPACITY={capacity!r}")

        if (strict := os.environ.get("REGMACH_STRICT_LABELS")) is not None:
            flag = strict.strip().lower()
            if flag in TRUE_VALUES:
                config.strict_labels = True
            elif flag in FALSE_VALUES:
                config.strict_labels = False
            else:
                logger.warning(f"Ignoring invalid REGMACH_STRICT_LABELS={strict!r}")

        return config
