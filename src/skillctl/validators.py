"""
Input validation functions for skillctl.

Skill ids are directory names and are joined onto root paths before any
filesystem access, so they must be a single, plain path component.
"""

from .errors import ConfigurationError

# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Skill id")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def check_skill_id(skill: str) -> tuple[bool, str]:
    """
    Check a skill id without raising.

    Args:
        skill: The skill id to check

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be '.' or '..'
        - Cannot contain a path separator ('/' or '\\')
        - Cannot contain a NUL byte
    """
    if not skill or not skill.strip():
        return (
            False,
            format_validation_error("Skill id", "cannot be empty"),
        )

    if skill in (".", ".."):
        return (
            False,
            format_validation_error(
                "Skill id", f"is not a directory name: {skill}"
            ),
        )

    if "/" in skill or "\\" in skill:
        return (
            False,
            format_validation_error(
                "Skill id",
                f"must be a single path component: {skill}",
            ),
        )

    if "\x00" in skill:
        return (
            False,
            format_validation_error("Skill id", "cannot contain NUL"),
        )

    return (True, "")


def validate_skill_id(skill: str) -> None:
    """Raise ``ConfigurationError`` unless *skill* is a valid skill id."""
    is_valid, reason = check_skill_id(skill)
    if not is_valid:
        raise ConfigurationError(
            reason,
            hint="Pass the skill's directory name only, e.g. 'my-skill'.",
        )
