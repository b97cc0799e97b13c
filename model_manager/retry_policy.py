# DEPENDENCIES
import sys
import time
import random
from typing import Any
from typing import Dict
from pathlib import Path
from typing import Callable
from typing import Optional
from dataclasses import field
from dataclasses import replace
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_warning
from config.settings import settings
from utils.exceptions import StatuteAnalyzerError
from utils.exceptions import RemoteServiceError
from utils.exceptions import classify_remote_error


def is_retryable(error: StatuteAnalyzerError) -> bool:
    """
    Default retryable-error predicate : only transient remote errors are retried
    """
    return isinstance(error, RemoteServiceError) and error.retryable


@dataclass(frozen = True)
class RetryPolicy:
    """
    Exponential backoff with jitter and a capped delay, wrapping any fallible remote call
    """
    max_attempts       : int                                         = 3
    base_delay_ms      : int                                         = 1000
    backoff_multiplier : float                                       = 2.0
    max_delay_ms       : int                                         = 10000
    jitter             : float                                       = 0.1
    retryable          : Callable[[StatuteAnalyzerError], bool]      = field(default = is_retryable, compare = False)


    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(max_attempts       = settings.RETRY_MAX_ATTEMPTS,
                   base_delay_ms      = settings.RETRY_BASE_DELAY_MS,
                   backoff_multiplier = settings.RETRY_BACKOFF_MULTIPLIER,
                   max_delay_ms       = settings.RETRY_MAX_DELAY_MS,
                   jitter             = settings.RETRY_JITTER,
                  )


    def with_overrides(self, overrides: Optional[Dict[str, Any]] = None, **kwargs) -> "RetryPolicy":
        """
        Copy of this policy with some fields replaced (unknown keys are rejected by dataclasses.replace)
        """
        changes = {**(overrides or {}), **kwargs}

        return replace(self, **changes) if changes else self


    def compute_delay(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        """
        Delay in seconds before retry number `attempt` (1-based)

        Arguments:
        ----------
            attempt { int }           : The attempt that just failed

            rng     { random.Random } : Random source for jitter

        Returns:
        --------
                { float }             : Seconds to wait, never above max_delay_ms
        """
        delay_ms = min(self.base_delay_ms * (self.backoff_multiplier ** (attempt - 1)), self.max_delay_ms)

        if (self.jitter > 0):
            rng       = rng or random
            delay_ms += delay_ms * self.jitter * rng.uniform(-1.0, 1.0)

        return max(0.0, min(delay_ms, self.max_delay_ms)) / 1000.0


    def execute(self, func: Callable[[], Any], operation: str, sleep: Callable[[float], None] = time.sleep,
                rng: Optional[random.Random] = None, deadline: Optional[float] = None, context: Optional[Dict[str, Any]] = None) -> Any:
        """
        Run `func` until it succeeds, a non-retryable error occurs or attempts are exhausted

        Arguments:
        ----------
            func      { callable } : Zero-argument remote call

            operation    { str }   : Name of the remote call, recorded on errors

            sleep     { callable } : Sleep function (injectable for tests)

            rng     { Random }     : Random source for jitter

            deadline   { float }   : time.monotonic() value after which no further retry is scheduled

            context     { dict }   : Extra context attached to the raised error (e.g. clause index)

        Returns:
        --------
                 { Any }           : Result of func

        Raises:
        -------
            TransientRemoteError / TerminalRemoteError / ValidationError : classified failure with attempt count
        """
        attempt = 0

        while True:
            attempt += 1

            try:
                return func()

            except Exception as e:
                error = classify_remote_error(e, service = operation, attempts = attempt)

                if context:
                    error.with_context(**context)

                out_of_time = (deadline is not None) and (time.monotonic() >= deadline)

                if (not self.retryable(error)) or (attempt >= self.max_attempts) or out_of_time:
                    if error is e:
                        raise

                    raise error from e

                delay = self.compute_delay(attempt, rng)

                log_warning(f"Retrying {operation}",
                            attempt       = attempt,
                            max_attempts  = self.max_attempts,
                            delay_seconds = round(delay, 3),
                            error         = str(e),
                           )

                sleep(delay)
