"""
Task implementation and timing statistics.

A Task is one queued, deferred unit of work. Its kind decides how the
pipeline feeds it: loaders take nothing and produce a LoadResult, every
other kind takes the current Surface and returns a new one.
"""

import copy
import enum
import inspect
import math
import time


def snapshot(arg):
    """Deep copy of a builder argument, so that editing it after the call
    does not change the queued task. Arguments that cannot be copied are kept as is."""
    try:
        return copy.deepcopy(arg)
    except (TypeError, copy.Error):
        return arg


class TaskKind(enum.Enum):
    LOADER       = 'loader'
    MANIPULATION = 'manipulation'
    FILTER       = 'filter'
    DRAW         = 'draw'


class Task:
    """An immutable (kind, operation) pair."""
    __slots__ = ('_kind', '_operation')

    def __init__(self, kind:TaskKind, operation):
        if not isinstance(kind, TaskKind):
            raise TypeError(f"task kind must be a TaskKind, not {kind!r}")
        if not callable(operation):
            raise TypeError(f"task operation must be callable, not {operation!r}")
        object.__setattr__(self, '_kind', kind)
        object.__setattr__(self, '_operation', operation)

    def __setattr__(self, name, value):
        raise AttributeError("Task is immutable")

    @property
    def kind(self):
        return self._kind

    @property
    def operation(self):
        return self._operation

    @property
    def name(self):
        """The factory that built the operation, e.g. 'resize'"""
        name = getattr(self._operation, '__qualname__', self._operation.__class__.__name__)
        return name.split('.<locals>')[0]

    async def run(self, *args):
        """Invoke the operation, awaiting its result if it is awaitable."""
        result = self._operation(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self):
        return f"<Task {self._kind.value} {self.name}>"


class TaskStats:
    """Running timing statistics for the tasks of one kind."""
    def __init__(self):
        self.sum_t   = 0
        self.sum_t2  = 0
        self.count   = 0

    def add(self, t):
        self.sum_t  += t
        self.sum_t2 += (t*t)
        self.count  += 1

    def timer(self):
        return _Timer(self)

    @property
    def t_mean(self):
        return self.sum_t / self.count if self.count>0 else float("nan")

    @property
    def t2_mean(self):
        return self.sum_t2 / self.count if self.count>0 else float("nan")

    @property
    def t_variance(self):
        return self.t2_mean - self.t_mean * self.t_mean

    @property
    def t_stddev(self):
        # rounding can push a zero variance slightly negative
        return math.sqrt(max(self.t_variance, 0)) if self.count>0 else float("nan")


class _Timer:
    """Context manager that adds the elapsed time to a TaskStats, even if the task fails."""
    def __init__(self, stats):
        self.stats = stats
        self.t0 = None

    def __enter__(self):
        self.t0 = time.time()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.stats.add(time.time() - self.t0)
        return False
