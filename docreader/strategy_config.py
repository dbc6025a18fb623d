"""
Strategy configuration.

StrategyConfig carries the LLM request parameters shared by every reading
strategy. It is built from caller keyword options through an explicit
allow-list, layered over the defaults from docreader/reader.yaml.
"""

from dataclasses import asdict, dataclass, fields, replace

from docreader.config import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_MODEL,
    DEFAULT_RETRIES,
    DEFAULT_TEMPERATURE,
    get_strategy_defaults,
)
from docreader.exceptions import ValidationError
from docreader.tokens import ModelLimits, model_limits

# Older option names accepted for compatibility with saved settings
OPTION_ALIASES = {
    'num_retries': 'retries',
    'pause_base': 'backoff_base',
}


@dataclass(frozen=True)
class StrategyConfig:
    """
    LLM request parameters for one reading run.

    Attributes:
        model: Provider model identifier
        temperature: Sampling temperature
        max_tokens: Output token cap; None means the model's full output budget
        presence_penalty: Provider presence penalty
        frequency_penalty: Provider frequency penalty
        retries: Additional attempts after a transport failure
        backoff_base: Retry delay base in seconds (delay = base * 2**attempt)
    """
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = None
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    retries: int = DEFAULT_RETRIES
    backoff_base: float = DEFAULT_BACKOFF_BASE

    def __post_init__(self):
        if not isinstance(self.model, str) or not self.model.strip():
            raise ValidationError("model must be a non-empty string")
        if self.max_tokens is not None and (not isinstance(self.max_tokens, int) or self.max_tokens < 1):
            raise ValidationError(f"max_tokens must be a positive integer, got {self.max_tokens!r}")
        if not isinstance(self.retries, int) or self.retries < 0:
            raise ValidationError(f"retries must be a non-negative integer, got {self.retries!r}")
        if self.backoff_base < 0:
            raise ValidationError(f"backoff_base must be >= 0, got {self.backoff_base!r}")

    @classmethod
    def option_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_options(cls, use_settings: bool = True, **options) -> 'StrategyConfig':
        """
        Build a config from keyword options.

        Args:
            use_settings: Layer options over the reader.yaml strategy defaults
            **options: Any of the dataclass fields (or their aliases)

        Returns:
            StrategyConfig

        Raises:
            ValidationError: For unknown option names or invalid values
        """
        values = dict(get_strategy_defaults()) if use_settings else {}
        allowed = cls.option_names()

        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in allowed:
                raise ValidationError(
                    f"Unknown option: {key!r}. Allowed options: {', '.join(allowed)}"
                )
            values[name] = value

        return cls(**values)

    def with_overrides(self, **changes) -> 'StrategyConfig':
        """Copy with some fields replaced."""
        return replace(self, **changes)

    @property
    def limits(self) -> ModelLimits:
        return model_limits(self.model)

    def resolved_max_tokens(self) -> int:
        """max_tokens, or the model's output budget when unset."""
        if self.max_tokens is not None:
            return self.max_tokens
        return self.limits.output_tokens

    def to_dict(self) -> dict:
        return asdict(self)
