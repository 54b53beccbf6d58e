"""
Resolution of the user-facing timing knobs into one execution plan.

The knobs overlap: a run can be described by a post amount, a time per
post, a total time, or a mix of them. ``resolve`` applies a fixed
precedence and returns an immutable ``Schedule`` that every worker reads.
"""
import math
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from .errors import ConfigurationError

DEFAULT_POST_AMOUNT = 1
DEFAULT_TIME_PER_POST = 10.0
DEFAULT_NUM_THREADS = 1
MAX_NUM_THREADS = 10

class ScheduleDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    post_amount: int = DEFAULT_POST_AMOUNT
    time_per_post: float = DEFAULT_TIME_PER_POST
    num_threads: int = DEFAULT_NUM_THREADS
    max_num_threads: int = Field(default=MAX_NUM_THREADS, ge=1, le=MAX_NUM_THREADS)

class Schedule(BaseModel):
    """Fully resolved plan for one run. post_amount is ignored when looping indefinitely."""
    model_config = ConfigDict(frozen=True)

    post_amount: int = Field(ge=1)
    time_per_post: float = Field(ge=0, allow_inf_nan=False)
    num_threads: int = Field(ge=1, le=MAX_NUM_THREADS)
    loop_indefinitely: bool

def validate_num_threads(num_threads: int, max_num_threads: int = MAX_NUM_THREADS) -> int:
    if not 1 <= num_threads <= max_num_threads:
        raise ConfigurationError(
            "num_threads",
            num_threads,
            f"Please specify a number of threads in [1, {max_num_threads}].",
        )
    return num_threads

def _is_valid_duration(seconds: float) -> bool:
    return math.isfinite(seconds) and seconds >= 0

def resolve(post_amount: Optional[int] = None,
            time_per_post: Optional[float] = None,
            total_time: Optional[float] = None,
            num_threads: Optional[int] = None,
            defaults: ScheduleDefaults = ScheduleDefaults()) -> Schedule:
    """
    Resolve optional run parameters into a Schedule.

    Args:
        post_amount: Posts per worker; unset with time_per_post set means loop forever
        time_per_post: Seconds between posts; wins over total_time when both are set
        total_time: Seconds the whole run should span, split evenly across posts
        num_threads: Number of concurrent workers, 1..defaults.max_num_threads
        defaults: Fallback values and the worker cap

    Raises:
        ConfigurationError: if any supplied value is out of range
    """
    if post_amount is not None and post_amount < 1:
        raise ConfigurationError("post_amount", post_amount, "Please specify at least 1 post.")
    if time_per_post is not None and not _is_valid_duration(time_per_post):
        raise ConfigurationError("time_per_post", time_per_post, "Time per post must be a finite, non-negative number of seconds.")
    if total_time is not None and not _is_valid_duration(total_time):
        raise ConfigurationError("total_time", total_time, "Total time must be a finite, non-negative number of seconds.")
    if num_threads is None:
        num_threads = defaults.num_threads
    validate_num_threads(num_threads, defaults.max_num_threads)

    # No post amount but a pace: keep posting until the process is stopped.
    # With neither, post once.
    loop_indefinitely = post_amount is None and time_per_post is not None

    if post_amount is None:
        post_amount = defaults.post_amount

    if time_per_post is None and total_time is None:
        interval = defaults.time_per_post
    elif time_per_post is None:
        interval = total_time / post_amount
    else:
        # total_time is dropped when both are given
        interval = time_per_post

    return Schedule(
        post_amount=post_amount,
        time_per_post=interval,
        num_threads=num_threads,
        loop_indefinitely=loop_indefinitely,
    )

class ScheduleConfig:
    """Mutable builder collecting whichever run parameters the user supplied."""

    def __init__(self):
        self.post_amount: Optional[int] = None
        self.time_per_post: Optional[float] = None
        self.total_time: Optional[float] = None
        self.num_threads: Optional[int] = None

    def with_post_amount(self, post_amount: Optional[int]) -> "ScheduleConfig":
        self.post_amount = post_amount
        return self

    def with_time_per_post(self, time_per_post: Optional[float]) -> "ScheduleConfig":
        self.time_per_post = time_per_post
        return self

    def with_total_time(self, total_time: Optional[float]) -> "ScheduleConfig":
        self.total_time = total_time
        return self

    def with_num_threads(self, num_threads: Optional[int]) -> "ScheduleConfig":
        self.num_threads = num_threads
        return self

    def build(self, defaults: ScheduleDefaults = ScheduleDefaults()) -> Schedule:
        return resolve(
            post_amount=self.post_amount,
            time_per_post=self.time_per_post,
            total_time=self.total_time,
            num_threads=self.num_threads,
            defaults=defaults,
        )
