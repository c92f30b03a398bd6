"""Unit tests for mood, journal and finance calculations."""

import random
from datetime import date, timedelta
from uuid import uuid4

import pytest

from projekt_l.domain.finance import (
    balance_changes,
    calculate_net_worth,
    compound_interest,
    goal_progress_percent,
    months_between,
    net_worth_level,
    savings_goal_xp,
    time_to_goal,
)
from projekt_l.domain.geist import (
    JOURNAL_PROMPTS,
    average_mood_score,
    mood_score,
    mood_streak,
    random_prompt,
    word_count,
)
from projekt_l.importers.finance import (
    detect_category,
    parse_bank_csv,
    parse_german_amount,
    parse_statement_date,
)


@pytest.mark.unit
class TestGeistRules:
    """Test mood scoring, streaks and journal helpers."""

    def test_mood_scores(self):
        assert mood_score("great") == 5
        assert mood_score("terrible") == 1

    def test_average_mood_score(self):
        assert average_mood_score(["great", "bad"]) == 3.5
        assert average_mood_score([]) is None

    def test_streak_including_today(self):
        today = date(2026, 4, 10)
        days = [today, today - timedelta(days=1), today - timedelta(days=2)]

        assert mood_streak(days, today) == 3

    def test_streak_may_end_yesterday(self):
        today = date(2026, 4, 10)
        days = [today - timedelta(days=1), today - timedelta(days=2), today - timedelta(days=4)]

        assert mood_streak(days, today) == 2

    def test_streak_broken(self):
        today = date(2026, 4, 10)

        assert mood_streak([today - timedelta(days=2)], today) == 0

    def test_word_count(self):
        assert word_count("  Heute war   ein guter Tag\n") == 5
        assert word_count("") == 0

    def test_random_prompt_is_from_the_list(self):
        assert random_prompt(random.Random(42)) in JOURNAL_PROMPTS


@pytest.mark.unit
class TestFinanceCalculations:
    """Test balance effects, net worth and savings projections."""

    def test_income_and_expense_touch_one_account(self):
        account = uuid4()

        assert balance_changes("income", 100, account) == [(account, 100)]
        assert balance_changes("expense", -40, account) == [(account, -40)]

    def test_transfer_moves_money_between_accounts(self):
        source, target = uuid4(), uuid4()

        assert balance_changes("transfer", 250, source, target) == [(source, -250), (target, 250)]

    def test_transfer_requires_distinct_target(self):
        account = uuid4()

        with pytest.raises(ValueError):
            balance_changes("transfer", 10, account)
        with pytest.raises(ValueError):
            balance_changes("transfer", 10, account, account)

    def test_transfer_with_removed_target_keeps_source_leg(self):
        source = uuid4()

        assert balance_changes("transfer", 80, source, None, target_removed=True) == [(source, -80)]

    def test_net_worth(self):
        worth = calculate_net_worth(
            [("checking", 1000), ("savings", 500), ("credit", -500), ("cash", -20)]
        )

        assert worth.assets == 1500
        assert worth.liabilities == 500
        assert worth.net_worth == 1000
        assert worth.level == 30

    def test_net_worth_level_bounds(self):
        assert net_worth_level(-100) == 1
        assert net_worth_level(0) == 1
        assert net_worth_level(10**12) == 100

    def test_compound_interest(self):
        assert compound_interest(1000, 0, 0.12, 12, 12) == 1126.83
        assert compound_interest(1000, 100, 0, 12, 12) == 2200.0

    def test_time_to_goal(self):
        assert time_to_goal(0, 1000, 100, 0.05) == 10
        assert time_to_goal(0, 1000, 300, 0) == 4
        assert time_to_goal(1000, 500, 100, 0) == 0
        assert time_to_goal(0, 1000, 0, 0) is None

    @pytest.mark.parametrize(
        "target,xp",
        [(10000, 150), (5000, 100), (4999.99, 75), (1000, 75), (500, 50), (499, 25)],
    )
    def test_savings_goal_xp_tiers(self, target, xp):
        assert savings_goal_xp(target) == xp

    def test_goal_progress_percent(self):
        assert goal_progress_percent(250, 1000) == 25.0
        assert goal_progress_percent(2000, 1000) == 100.0
        assert goal_progress_percent(10, 0) == 100.0

    def test_months_between(self):
        assert months_between(2025, 11, 2026, 2) == 3


@pytest.mark.unit
class TestBankCsvImport:
    """Test parsing semicolon separated bank statements."""

    STATEMENT = (
        "Datum;Verwendungszweck;Betrag\n"
        "01.03.2026;REWE Markt;-45,20\n"
        '02.03.2026;"Gehalt März";2.500,00\n'
        "kaputt;x;y\n"
    )

    def test_parse_rows(self):
        rows = parse_bank_csv(self.STATEMENT)

        assert len(rows) == 2
        assert rows[0].occurred_at == date(2026, 3, 1)
        assert rows[0].amount == -45.2
        assert rows[0].category == "Essen"
        assert rows[1].description == "Gehalt März"
        assert rows[1].amount == 2500.0
        assert rows[1].category == "Gehalt"

    def test_quoted_delimiter_stays_in_cell(self):
        rows = parse_bank_csv('Datum;Beschreibung;Betrag\n01.02.2024;"Miete; Februar";-800,00\n')

        assert len(rows) == 1
        assert rows[0].description == "Miete; Februar"
        assert rows[0].amount == -800.0
        assert rows[0].category == "Wohnen"

    def test_comma_separated_export(self):
        rows = parse_bank_csv('Date,Description,Amount\n2026-03-05,"Netflix, Abo","-12,99"\n')

        assert [(r.description, r.amount, r.category) for r in rows] == [
            ("Netflix, Abo", -12.99, "Unterhaltung")
        ]

    def test_missing_amount_column(self):
        assert parse_bank_csv("Datum;Text\n01.03.2026;abc\n") == []

    def test_header_only(self):
        assert parse_bank_csv("Datum;Betrag\n") == []

    def test_german_amounts(self):
        assert parse_german_amount("1.234,56") == 1234.56
        assert parse_german_amount("-12,50") == -12.5
        assert parse_german_amount("abc") is None

    def test_statement_dates(self):
        assert parse_statement_date("05.03.2026") == date(2026, 3, 5)
        assert parse_statement_date("2026-03-05") == date(2026, 3, 5)
        assert parse_statement_date("31.02.2026") is None

    def test_detect_category(self):
        assert detect_category("Netflix Abo") == "Unterhaltung"
        assert detect_category("Überweisung an Oma") == "Sonstiges"
