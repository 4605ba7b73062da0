"""Configuration module for the interception harness.

This module provides the InterceptionConfig class that controls which
requests the interception middleware observes, what it does with requests no
route handles, and the default deadline applied by the request waiter.

Example:
    Basic usage with defaults:

        >>> config = InterceptionConfig()
        >>> config.on_unhandled
        'warn'

    Custom configuration:

        >>> config = InterceptionConfig(
        ...     intercepted_methods=["POST", "PUT"],
        ...     on_unhandled="error",
        ...     default_wait_timeout_seconds=5,
        ... )

    Loading from environment:

        >>> import os
        >>> os.environ['INTERCEPTION_ON_UNHANDLED'] = 'bypass'
        >>> config = InterceptionConfig.from_env()
"""

import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

VALID_HTTP_METHODS = {
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "CONNECT",
    "OPTIONS",
    "TRACE",
    "PATCH",
}

MAX_WAIT_TIMEOUT_SECONDS = 300


class InterceptionConfig(BaseModel):
    """Configuration for the interception middleware and request waiter.

    Attributes:
        intercepted_methods: HTTP methods the middleware emits lifecycle
            events for. Requests with other methods pass through untouched.
            Defaults to every known HTTP method.
        on_unhandled: What the middleware does with a request no route
            matches. "bypass" passes it to the app silently, "warn" logs a
            warning and passes it on, "error" answers 500 without calling
            the app. Default is "warn".
        default_wait_timeout_seconds: Deadline applied by
            RequestWaiter.wait_for_request when the caller gives none.
            None means wait forever. When set it must be in (0, 300].

    Note:
        This class is immutable (frozen=True).
    """

    intercepted_methods: list[str] | str = Field(
        default_factory=lambda: sorted(VALID_HTTP_METHODS),
        description="HTTP methods that emit lifecycle events",
    )
    on_unhandled: Literal["bypass", "warn", "error"] = Field(
        default="warn",
        description="Strategy for requests that no route handles",
    )
    default_wait_timeout_seconds: float | None = Field(
        default=None,
        description="Default waiter deadline in seconds (None waits forever)",
    )

    model_config = {"frozen": True}

    @field_validator("intercepted_methods", mode="before")
    @classmethod
    def validate_intercepted_methods(cls, v: Any) -> list[str]:
        """Validate and normalize intercepted HTTP methods.

        Args:
            v: List of HTTP method strings or comma-separated string.

        Returns:
            List of uppercase, validated HTTP methods.

        Raises:
            ValueError: If any method is not a valid HTTP method.

        Example:
            >>> InterceptionConfig(intercepted_methods="post, put").intercepted_methods
            ['POST', 'PUT']
        """
        if isinstance(v, str):
            # Comma-separated string (from environment variables)
            v = [method.strip() for method in v.split(",") if method.strip()]

        if not isinstance(v, list):
            raise ValueError("intercepted_methods must be a list or comma-separated string")

        methods = [method.upper() for method in v]

        invalid_methods = set(methods) - VALID_HTTP_METHODS
        if invalid_methods:
            raise ValueError(
                f"Invalid HTTP methods: {', '.join(sorted(invalid_methods))}. "
                f"Valid methods are: {', '.join(sorted(VALID_HTTP_METHODS))}"
            )

        return methods

    @field_validator("default_wait_timeout_seconds")
    @classmethod
    def validate_default_wait_timeout_seconds(cls, v: float | None) -> float | None:
        """Validate the default waiter deadline.

        Raises:
            ValueError: If the deadline is not in (0, 300].
        """
        if v is None:
            return v
        if not (0 < v <= MAX_WAIT_TIMEOUT_SECONDS):
            raise ValueError(
                "default_wait_timeout_seconds must be greater than 0 and at most "
                f"{MAX_WAIT_TIMEOUT_SECONDS}, got {v}"
            )
        return v

    @classmethod
    def from_env(cls, prefix: str = "INTERCEPTION_") -> "InterceptionConfig":
        """Create configuration from environment variables.

        Variable names are the uppercase field names with the prefix. An
        empty or "none" DEFAULT_WAIT_TIMEOUT_SECONDS disables the deadline.

        Args:
            prefix: Prefix for environment variable names.

        Returns:
            InterceptionConfig populated from environment variables.

        Example:
            >>> import os
            >>> os.environ['INTERCEPTION_INTERCEPTED_METHODS'] = 'POST,PUT'
            >>> os.environ['INTERCEPTION_DEFAULT_WAIT_TIMEOUT_SECONDS'] = '2.5'
            >>> config = InterceptionConfig.from_env()
            >>> config.default_wait_timeout_seconds
            2.5
        """
        config_dict: dict[str, Any] = {}

        field_types = {
            "intercepted_methods": list,
            "on_unhandled": str,
            "default_wait_timeout_seconds": float,
        }

        for field_name, field_type in field_types.items():
            env_var = f"{prefix}{field_name.upper()}"
            env_value = os.environ.get(env_var)

            if env_value is None:
                continue

            if field_type is float:
                if env_value.strip().lower() in ("", "none"):
                    config_dict[field_name] = None
                else:
                    config_dict[field_name] = float(env_value)
            else:
                # Lists stay comma-separated; the validator splits them
                config_dict[field_name] = env_value

        return cls(**config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "InterceptionConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If the dictionary contains invalid values.
        """
        return cls(**config_dict)
