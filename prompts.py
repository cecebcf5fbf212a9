# -*- coding: utf-8 -*-
# SPDX-License-Identifier: FAFOL

"""Terminal prompts for picking weeks, tasks, days and hours"""

from getpass import getpass
from typing import Iterable, List, Sequence, Tuple, Union

from rich import print
from rich.markup import escape

from clarizen import Task
from timesheet import (MAX_HOURS, MAX_WEEKS_AHEAD, MIN_HOURS, MIN_WEEKS_AHEAD,
                       WEEKDAY_NAMES, WORKDAYS, DayHours, PerDay, WeekRange,
                       WholeWeek)

YES = ('y', 'yes')
NO = ('n', 'no')


def parse_selection(line: str, minimum: int, maximum: int) -> List[int]:
    """Parse a comma-separated line of numbers, all within [minimum, maximum].

    Raises:
        ValueError: if any token is blank, not a number, or out of range
    """
    numbers = []
    for token in line.split(','):
        number = int(token.strip())
        if not minimum <= number <= maximum:
            raise ValueError(f'{number} is not between {minimum} and {maximum}')
        numbers.append(number)
    return numbers


def ask_selection(prompt: str, minimum: int, maximum: int,
                  multiple: bool = True) -> Union[int, List[int]]:
    """
    Keep asking until the whole line is valid

    Args:
        prompt (str): the question to show
        minimum (int): smallest acceptable number
        maximum (int): largest acceptable number
        multiple (bool): accept a comma-separated list (default True)

    Returns:
        list[int] when `multiple`, otherwise a single int
    """
    while True:
        line = input(f'{prompt} ')
        try:
            numbers = parse_selection(line, minimum, maximum)
        except ValueError as exc:
            print(f'[red]Please enter numbers from {minimum} to {maximum}[/red] ({escape(str(exc))})')
            continue
        if not multiple and len(numbers) != 1:
            print(f'[red]Please enter one number from {minimum} to {maximum}[/red]')
            continue
        return numbers if multiple else numbers[0]


def ask_yes_no(prompt: str) -> bool:
    while True:
        answer = input(f'{prompt} [y/n] ').strip().lower()
        if answer in YES:
            return True
        if answer in NO:
            return False
        print('[red]Please answer y or n[/red]')


def print_menu(options: Iterable[str]) -> None:
    for number, option in enumerate(options, start=1):
        print(f'  [b]{number}.[/b] {escape(str(option))}')


def _unique(choices: List[int]) -> List[int]:
    return list(dict.fromkeys(choices))


def ask_weeks_ahead() -> int:
    return ask_selection(f'How many weeks ahead ({MIN_WEEKS_AHEAD}-{MAX_WEEKS_AHEAD})?',
                         MIN_WEEKS_AHEAD, MAX_WEEKS_AHEAD, multiple=False)


def select_weeks(weeks: Sequence[WeekRange]) -> List[WeekRange]:
    """Pick some of the weeks; the extra last option picks all of them."""
    everything = len(weeks) + 1
    print('[b]Weeks:[/b]')
    print_menu([f"{week.start.format('ddd MMM DD')} to {week.end.format('ddd MMM DD')}"
                for week in weeks] + ['All weeks'])
    choices = ask_selection('Which weeks (comma separated)?', 1, everything)
    if everything in choices:
        return list(weeks)
    return [weeks[choice - 1] for choice in _unique(choices)]


def select_tasks(tasks: Sequence[Task]) -> List[Task]:
    print('[b]Active tasks:[/b]')
    print_menu(task.name for task in tasks)
    choices = ask_selection('Which tasks (comma separated)?', 1, len(tasks))
    return [tasks[choice - 1] for choice in _unique(choices)]


def ask_day_hours(task: Task, week: WeekRange) -> DayHours:
    """Ask which weekdays to fill for a task and how many hours go on each."""
    whole_week = WORKDAYS + 1
    print(f'[b]{escape(task.name)}[/b], week of {week.start.format("MMM DD")}:')
    print_menu(list(WEEKDAY_NAMES) + ['Whole week'])
    days = ask_selection('Which days (comma separated)?', 1, whole_week)
    if whole_week in days:
        offsets = list(range(WORKDAYS))
    else:
        offsets = sorted({day - 1 for day in days})

    if len(offsets) == 1 or ask_yes_no('Same hours on each day?'):
        hours = ask_selection(f'How many hours ({MIN_HOURS}-{MAX_HOURS})?',
                              MIN_HOURS, MAX_HOURS, multiple=False)
        if whole_week in days:
            return WholeWeek(hours=hours)
        return PerDay(hours={offset: hours for offset in offsets})

    return PerDay(hours={
        offset: ask_selection(f"Hours on {week.day(offset).format('dddd MMM DD')} "
                              f"({MIN_HOURS}-{MAX_HOURS})?",
                              MIN_HOURS, MAX_HOURS, multiple=False)
        for offset in offsets
    })


def ask_credentials(username: str = None, password: str = None) -> Tuple[str, str]:
    """Fill in whichever of user name and password are missing."""
    while not username:
        username = input('Clarizen user name: ').strip()
    while not password:
        password = getpass('Clarizen password: ')
    return username, password
