# -*- coding: utf-8 -*-
# SPDX-License-Identifier: FAFOL
# pylint: disable=logging-fstring-interpolation

"""Fill out Clarizen timesheets for this week and the next few"""

import configparser
import logging
import sys

from rich import print

from clarizen import (Clarizen, ClarizenError, ErrorKind, load_secrets,
                      setup_logging)
from prompts import (ask_credentials, ask_day_hours, ask_weeks_ahead,
                     ask_yes_no, select_tasks, select_weeks)
from timesheet import (WriteAbortedError, make_plan_table, plan_timesheets,
                       week_ranges, write_entries)

logger = logging.getLogger('fill_timesheet')


def run(clarizen: Clarizen, secrets: configparser.ConfigParser) -> int:
    """Walk the user from login through to written timesheets.

    Returns the process exit status.
    """
    try:
        username, password = ask_credentials(
            username=secrets.get('user', 'user', fallback=''),
            password=secrets.get('user', 'password', fallback=''))
        clarizen.login(username, password)

        weeks = select_weeks(week_ranges(ask_weeks_ahead()))

        tasks = clarizen.get_active_tasks()
        if not tasks:
            raise ClarizenError(ErrorKind.NOT_FOUND,
                                f'No active tasks for {clarizen.resource}')
        tasks = select_tasks(tasks)

        # prompts and lookups interleave: each week is planned as soon as it is answered
        entries = plan_timesheets(clarizen, ((task, week, ask_day_hours(task, week))
                                             for task in tasks
                                             for week in weeks))
        if not entries:
            print('Nothing to write')
            return 0

        print(make_plan_table(entries))
        if not ask_yes_no('Write these timesheets?'):
            print('Nothing written')
            return 0

        applied = write_entries(clarizen, entries)
        print(f'[green]Wrote {len(applied)} timesheets[/green]')
        return 0
    except WriteAbortedError as exc:
        for entry in exc.applied:
            logger.info(f'Applied before the failure: {entry}')
        logger.critical(f'Stopped writing timesheets: {exc}')
        return 1
    except ClarizenError as exc:
        logger.critical(f'Giving up: {exc}')
        return 1
    finally:
        if clarizen.logged_in:
            try:
                clarizen.logout()
            except ClarizenError as exc:
                logger.warning(f'Could not log out: {exc}')


def main(secrets_path: str = 'secrets.ini') -> int:
    """Main function"""
    secrets = load_secrets(secrets_path)
    setup_logging(secrets.get('logging', 'level', fallback='INFO'))
    return run(Clarizen.from_secrets(secrets), secrets)


if __name__ == '__main__':
    sys.exit(main())
