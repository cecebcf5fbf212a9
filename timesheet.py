# -*- coding: utf-8 -*-
# SPDX-License-Identifier: FAFOL
# pylint: disable=logging-fstring-interpolation

"""Plan and write a batch of Clarizen timesheets"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple, Union

import arrow
from rich.console import Console, ConsoleOptions, RenderResult
from rich.progress import Progress
from rich.table import Table

from clarizen import Clarizen, ClarizenError, ErrorKind, Task, format_date


WORKDAYS = 5
WEEKDAY_NAMES = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday')
MIN_WEEKS_AHEAD = 1
MAX_WEEKS_AHEAD = 4
MIN_HOURS = 0
MAX_HOURS = 8

logger = logging.getLogger('Timesheet')


def check_hours(hours: int) -> int:
    if not MIN_HOURS <= hours <= MAX_HOURS:
        raise ValueError(f'Hours must be between {MIN_HOURS} and {MAX_HOURS}, not {hours}')
    return hours


@dataclass(frozen=True)
class WeekRange:
    """Monday to Friday of one week."""
    start: arrow.Arrow
    end: arrow.Arrow

    def day(self, offset: int) -> arrow.Arrow:
        """The weekday `offset` days after Monday (0 = Monday, 4 = Friday)."""
        if not 0 <= offset < WORKDAYS:
            raise ValueError(f'Day offset must be between 0 and {WORKDAYS - 1}, not {offset}')
        return self.start.shift(days=offset)

    def days(self) -> List[arrow.Arrow]:
        return [self.day(offset) for offset in range(WORKDAYS)]

    def __contains__(self, day: arrow.Arrow) -> bool:
        return self.start.date() <= day.date() <= self.end.date()

    def __str__(self) -> str:
        return f'{self.start.date()}--{self.end.date()}'

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        # pylint: disable=unused-argument
        yield f"[b]Week:[/b] {self.start.format('ddd MMM DD')} to {self.end.format('ddd MMM DD')}"


def week_ranges(weeks_ahead: int, today: arrow.Arrow = None) -> List[WeekRange]:
    """Calculate this week and the following ones.

    Every week begins on a Monday (weekday = 0) and ends on the Friday four
    days later.

    Args:
        weeks_ahead (int): how many weeks after this one, 1 to 4
        today (arrow): the date to anchor on (default None, for now)

    Returns:
        list[WeekRange]: `weeks_ahead` + 1 weeks, earliest first

    """
    if not MIN_WEEKS_AHEAD <= weeks_ahead <= MAX_WEEKS_AHEAD:
        raise ValueError(f'Weeks ahead must be between {MIN_WEEKS_AHEAD} and '
                         f'{MAX_WEEKS_AHEAD}, not {weeks_ahead}')
    today = (today or arrow.now()).floor('day')
    monday = today.shift(days=-today.weekday())
    return [WeekRange(start=monday.shift(weeks=week),
                      end=monday.shift(weeks=week, days=WORKDAYS - 1))
            for week in range(weeks_ahead + 1)]


@dataclass(frozen=True)
class WholeWeek:
    """The same hours on every weekday."""
    hours: int

    def __post_init__(self) -> None:
        check_hours(self.hours)

    def items(self) -> List[Tuple[int, int]]:
        return [(offset, self.hours) for offset in range(WORKDAYS)]


@dataclass(frozen=True)
class PerDay:
    """Hours for a chosen set of weekdays, keyed by offset from Monday."""
    hours: Dict[int, int]

    def __post_init__(self) -> None:
        for offset, hours in self.hours.items():
            if not 0 <= offset < WORKDAYS:
                raise ValueError(f'Day offset must be between 0 and {WORKDAYS - 1}, not {offset}')
            check_hours(hours)

    def items(self) -> List[Tuple[int, int]]:
        return sorted(self.hours.items())


DayHours = Union[WholeWeek, PerDay]


class Action(Enum):
    CREATE = 'Create'
    UPDATE = 'Update'


@dataclass
class PlannedEntry:
    """One timesheet row to create or update."""
    action: Action
    task: Task
    reported_date: arrow.Arrow
    hours: int

    def __post_init__(self) -> None:
        check_hours(self.hours)

    @property
    def duration(self) -> str:
        return f'{self.hours}h'

    def __str__(self) -> str:
        return f'{self.action.value} {self.task} on {format_date(self.reported_date)} ({self.duration})'


class WriteAbortedError(ClarizenError):
    """A write failed part way through a batch; earlier writes stay applied."""

    def __init__(self, cause: ClarizenError, entry: PlannedEntry,
                 applied: List[PlannedEntry]) -> None:
        super().__init__(cause.kind,
                         f'{entry} failed after {len(applied)} applied: {cause.message}')
        self.entry = entry
        self.applied = applied


def plan_week(clarizen: Clarizen, task: Task, week: WeekRange,
              day_hours: DayHours) -> List[PlannedEntry]:
    """Decide, day by day, whether a task's timesheet needs creating or updating."""
    entries = []
    for offset, hours in day_hours.items():
        day = week.day(offset)
        existing = clarizen.find_timesheets(task, day)
        action = Action.UPDATE if existing else Action.CREATE
        entry = PlannedEntry(action=action, task=task, reported_date=day, hours=hours)
        logger.debug(f'Planned {entry}')
        entries.append(entry)
    return entries


def plan_timesheets(clarizen: Clarizen,
                    selections: Iterable[Tuple[Task, WeekRange, DayHours]]) -> List[PlannedEntry]:
    entries = []
    for task, week, day_hours in selections:
        entries.extend(plan_week(clarizen, task, week, day_hours))
    return entries


def write_entry(clarizen: Clarizen, entry: PlannedEntry) -> None:
    """Send one planned entry to Clarizen.

    Updates look the timesheet up again, since it may have been submitted or
    removed since planning.
    """
    if entry.action is Action.CREATE:
        clarizen.create_timesheet(entry.task, entry.duration, entry.reported_date)
        return

    existing = clarizen.find_timesheets(entry.task, entry.reported_date)
    if not existing:
        raise ClarizenError(ErrorKind.NOT_FOUND,
                            f'No un-submitted timesheet left for {entry.task} '
                            f'on {format_date(entry.reported_date)}')
    clarizen.update_timesheet(existing[0]['id'], entry.duration, entry.reported_date)


def write_entries(clarizen: Clarizen, entries: List[PlannedEntry]) -> List[PlannedEntry]:
    """
    Write planned entries in order, stopping at the first failure

    Args:
        clarizen (Clarizen): a logged-in client
        entries (list[PlannedEntry]): the plan

    Raises:
        WriteAbortedError: when an entry fails; nothing after it is attempted

    Returns:
        list[PlannedEntry]: the entries written
    """
    applied = []
    with Progress(transient=True) as progress:
        write_task = progress.add_task('Writing timesheets:', total=len(entries))
        for entry in entries:
            try:
                write_entry(clarizen, entry)
            except ClarizenError as exc:
                logger.error(f'Error writing {entry}: {exc}')
                raise WriteAbortedError(exc, entry, applied) from exc
            applied.append(entry)
            logger.info(f'Wrote {entry}')
            progress.advance(write_task)
    return applied


def make_plan_table(entries: List[PlannedEntry]) -> Table:
    """Tabulate a plan for the user to look over before writing."""
    my_table = Table('#', 'Action', 'Task', 'Date', 'Duration',
                     title='Planned timesheets')
    for number, entry in enumerate(entries, start=1):
        my_table.add_row(str(number),
                         entry.action.value,
                         entry.task.name,
                         entry.reported_date.format('ddd YYYY-MM-DD'),
                         entry.duration)
    return my_table
