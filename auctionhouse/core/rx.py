"""
Reactivex schedulers

Observers of service lifecycle events, sweep results and notification events run on a thread pool, never on the
thread that produced the event.
"""
import os
from typing import TypeVar

from reactivex import Observable
from reactivex.abc import SchedulerBase
from reactivex.operators import observe_on
from reactivex.scheduler import ThreadPoolScheduler


def threadpool_scheduler(max_workers: int | None = None) -> ThreadPoolScheduler:
    """
    :param max_workers: defaults to the CPU count
    """
    return ThreadPoolScheduler(max_workers if max_workers else (os.cpu_count() or 1))


default_scheduler: ThreadPoolScheduler = threadpool_scheduler()

T = TypeVar("T")


def observe_in_background(
    source: Observable[T], scheduler: SchedulerBase | None = None
) -> Observable[T]:
    """
    Returns an Observable that delivers `source` notifications on `scheduler`.

    :param scheduler: defaults to `default_scheduler`
    """
    return source.pipe(observe_on(scheduler if scheduler else default_scheduler))
