"""Engine configuration for pydiffy."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from pydiffy.exceptions import DiffyConfigError


class ErrorPolicy(StrEnum):
    """What :meth:`DiffEngine.ingest` does when an observer raises."""

    ABORT = "abort"
    COLLECT = "collect"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _parse_policy(value: str | ErrorPolicy) -> ErrorPolicy:
    try:
        return ErrorPolicy(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in ErrorPolicy)
        raise DiffyConfigError(
            f"Unknown error policy {value!r} (expected one of: {allowed})",
            field="error_policy",
        ) from None


@dataclasses.dataclass(frozen=True)
class DiffyConfig:
    """Engine configuration.

    Parameters
    ----------
    error_policy : ErrorPolicy
        ``abort`` stops the ingestion at the first failing observer and
        re-raises its exception unchanged. ``collect`` evaluates every
        observer and raises an :class:`ExceptionGroup` afterwards if any
        of them failed. In both cases the prior snapshot is left as it was.
    log_values : bool
        Include changed slice values in DEBUG log lines. Values are passed
        through :func:`pydiffy._logfmt.summarize_for_log` first.
    max_log_string : int
        Strings longer than this are truncated in DEBUG log lines.
    """

    error_policy: ErrorPolicy = ErrorPolicy.ABORT
    log_values: bool = False
    max_log_string: int = 256

    def __post_init__(self) -> None:
        # Frozen dataclass: coerce plain strings through object.__setattr__.
        object.__setattr__(self, "error_policy", _parse_policy(self.error_policy))
        if self.max_log_string <= 0:
            raise DiffyConfigError(
                f"max_log_string must be positive, got {self.max_log_string}",
                field="max_log_string",
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> DiffyConfig:
        """Create configuration from environment variables.

        Reads ``DIFFY_ERROR_POLICY``, ``DIFFY_LOG_VALUES`` and
        ``DIFFY_MAX_LOG_STRING``. Explicit keyword arguments override
        environment values.

        Raises
        ------
        DiffyConfigError
            If a variable holds a value that cannot be parsed.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        policy_env = env.get("DIFFY_ERROR_POLICY")
        if policy_env is not None and "error_policy" not in overrides:
            config_kwargs["error_policy"] = _parse_policy(policy_env)

        if "log_values" not in overrides:
            config_kwargs["log_values"] = _env_bool(env.get("DIFFY_LOG_VALUES"), False)

        max_env = env.get("DIFFY_MAX_LOG_STRING")
        if max_env is not None and "max_log_string" not in overrides:
            try:
                config_kwargs["max_log_string"] = int(max_env)
            except ValueError:
                raise DiffyConfigError(
                    f"DIFFY_MAX_LOG_STRING is not an integer: {max_env!r}",
                    field="max_log_string",
                ) from None

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
