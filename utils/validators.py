# DEPENDENCIES
import sys
from typing import Any
from typing import Dict
from typing import List
from typing import Tuple
from typing import Optional
from pathlib import Path

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.exceptions import ValidationError


class ClauseValidator:
    """
    Validate option values and provider configuration at the service boundary
    """
    @staticmethod
    def validate_threshold(value: Any, name: str) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{name} must be a number between 0 and 1")

        if not (0.0 <= float(value) <= 1.0):
            raise ValidationError(f"{name} must be between 0 and 1", context = {name : value})

        return float(value)


    @staticmethod
    def validate_positive_int(value: Any, name: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or (value < 1):
            raise ValidationError(f"{name} must be a positive integer", context = {name : value})

        return value


    @staticmethod
    def validate_bool(value: Any, name: str) -> bool:
        if not isinstance(value, bool):
            raise ValidationError(f"{name} must be true or false", context = {name : value})

        return value


    @staticmethod
    def validate_string_list(value: Any, name: str) -> List[str]:
        """
        A list of non-empty strings; a bare string is rejected rather than split into characters
        """
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise ValidationError(f"{name} must be a list of strings", context = {name : value})

        if not all(isinstance(item, str) and item.strip() for item in value):
            raise ValidationError(f"{name} must only contain non-empty strings", context = {name : list(value)})

        return list(value)


    @staticmethod
    def validate_openai_config(api_key: Optional[str]) -> Tuple[bool, List[str]]:
        """
        Check the OpenAI key looks usable

        Returns:
        --------
            { tuple } : (is_valid, errors)
        """
        errors = list()

        if not api_key:
            errors.append("OPENAI_API_KEY environment variable is not set")

        elif not api_key.startswith("sk-"):
            errors.append("OPENAI_API_KEY should start with sk-")

        return (len(errors) == 0), errors


    @staticmethod
    def validate_options(options: Dict[str, Any], thresholds: List[str], positive_ints: List[str], booleans: Optional[List[str]] = None,
                         string_lists: Optional[List[str]] = None, strings: Optional[List[str]] = None):
        """
        Validate the named option values that are present and not None

        Raises:
        -------
            ValidationError : On the first value of the wrong type or range
        """
        for name in thresholds:
            if (name in options) and (options[name] is not None):
                ClauseValidator.validate_threshold(options[name], name)

        for name in positive_ints:
            if (name in options) and (options[name] is not None):
                ClauseValidator.validate_positive_int(options[name], name)

        for name in (booleans or []):
            if (name in options) and (options[name] is not None):
                ClauseValidator.validate_bool(options[name], name)

        for name in (string_lists or []):
            if (name in options) and (options[name] is not None):
                ClauseValidator.validate_string_list(options[name], name)

        for name in (strings or []):
            if (name in options) and (options[name] is not None) and not isinstance(options[name], str):
                raise ValidationError(f"{name} must be a string", context = {name : options[name]})
