"""Tests for the period flags shared by listing commands."""

from datetime import date

import click
import pytest

from pennywise.cli.date_filters import parse_date_or_exit, resolve_cli_date_range
from pennywise.utils.date_parser import get_date_range


def _ctx() -> click.Context:
    return click.Context(click.Command("transaction"))


def _flags(**chosen):
    flags = {"this-month": False, "last-month": False, "this-year": False}
    flags.update({name.replace("_", "-"): value for name, value in chosen.items()})
    return flags


@pytest.mark.parametrize("period", ["this-month", "last-month", "this-year"])
def test_period_flag_resolves_to_range(period):
    start, end = resolve_cli_date_range(
        _ctx(), start_date=None, end_date=None, period_flags=_flags(**{period: True})
    )

    assert (start, end) == get_date_range(period)
    assert start <= end


def test_two_period_flags_rejected(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(),
            start_date=None,
            end_date=None,
            period_flags=_flags(this_month=True, this_year=True),
        )

    assert excinfo.value.exit_code == 1
    err = capsys.readouterr().err
    assert "Only one period option" in err
    assert "--last-month" in err


def test_period_flag_with_explicit_end_rejected(capsys):
    with pytest.raises(click.exceptions.Exit):
        resolve_cli_date_range(
            _ctx(), start_date=None, end_date="today", period_flags=_flags(last_month=True)
        )

    assert "cannot be combined" in capsys.readouterr().err


def test_open_ended_range():
    start, end = resolve_cli_date_range(
        _ctx(), start_date="2024-02-10", end_date=None, period_flags=_flags()
    )

    assert start == date(2024, 2, 10)
    assert end is None


def test_no_filters_means_all_dates():
    assert resolve_cli_date_range(
        _ctx(), start_date=None, end_date=None, period_flags=_flags()
    ) == (None, None)


def test_relative_dates_accepted():
    start, end = resolve_cli_date_range(
        _ctx(), start_date="this month", end_date="today", period_flags=_flags()
    )

    assert start == date.today().replace(day=1)
    assert end == date.today()


def test_bad_end_date_names_the_option(capsys):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve_cli_date_range(
            _ctx(), start_date=None, end_date="someday", period_flags=_flags()
        )

    assert excinfo.value.exit_code == 1
    assert "Invalid end date" in capsys.readouterr().err


def test_parse_date_or_exit_default_label(capsys):
    with pytest.raises(click.exceptions.Exit):
        parse_date_or_exit(_ctx(), "2024-13-45")

    assert "Error: Invalid date" in capsys.readouterr().err
