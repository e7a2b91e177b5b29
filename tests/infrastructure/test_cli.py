"""End-to-end tests of the click command line against a temporary store."""

import logging
from datetime import datetime, timedelta

import pytest
from click.testing import CliRunner

from crm.infrastructure.cli.main import cli


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.delenv("CRM_LOG_LEVEL", raising=False)
    runner = CliRunner()

    def _run(*args: str, user: str = "m1"):
        return runner.invoke(cli, ["--data-dir", str(tmp_path), "--user", user, *args])

    return _run


def _seed(run) -> None:
    assert run("product", "add", "--name", "Widget", "--price", "15.00").exit_code == 0
    assert run("stock", "receive", "--product", "Widget", "--quantity", "10").exit_code == 0
    result = run("order", "create", "--client-id", "c-1", "--client-name", "Acme",
                 "--items", "Widget:4")
    assert result.exit_code == 0, result.output


class TestProductAndStockCommands:

    def test_product_list(self, run):
        run("product", "add", "--name", "Widget", "--price", "15.00")
        result = run("product", "list")
        assert result.exit_code == 0
        assert "Widget" in result.output
        assert "15.00 RUB" in result.output

    def test_stock_issue_shortage_is_reported(self, run):
        _seed(run)
        result = run("stock", "issue", "--product", "Widget", "--quantity", "11")
        assert result.exit_code == 1
        assert "Insufficient stock for Widget (need 11, have 10 available)" in result.output

    def test_stock_set_and_history(self, run):
        _seed(run)
        assert run("stock", "set", "--product", "Widget", "--quantity", "7").exit_code == 0
        result = run("stock", "history", "--product", "Widget")
        assert "INVENTORY" in result.output
        assert "-3" in result.output
        assert "Widget" in run("stock", "show").output


class TestOrderCommands:

    def test_create_and_show(self, run):
        _seed(run)
        result = run("order", "show", "--id", "1")
        assert result.exit_code == 0
        assert "ORD-000001" in result.output
        assert "status=CREATED" in result.output
        assert "60.00 RUB" in result.output

    def test_bad_items_format(self, run):
        result = run("order", "create", "--client-id", "c-1", "--items", "Widget")
        assert result.exit_code == 2
        assert "ProductName:Quantity" in result.output

    def test_invalid_transition_lists_allowed(self, run):
        _seed(run)
        result = run("order", "transition", "--id", "1", "--status", "PROPOSAL_SENT")
        assert result.exit_code == 1
        assert "allowed: CALCULATION" in result.output

    def test_valid_transitions(self, run):
        _seed(run)
        result = run("order", "valid-transitions", "--id", "1")
        assert "Current status: CREATED" in result.output
        assert "CALCULATION" in result.output

    def test_delete_unshipped_order(self, run):
        _seed(run)
        assert "deleted" in run("order", "delete", "--id", "1").output
        assert run("order", "show", "--id", "1").exit_code == 1


class TestProposalAndSweepCommands:

    def test_full_follow_up_cycle(self, run):
        _seed(run)
        result = run("order", "create-calculation", "--id", "1",
                     "--cost", "gas_cost=100", "--cost", "price_per_unit=50", "--cost", "quantity=4")
        assert result.exit_code == 0, result.output
        assert "order ORD-000001 is CALCULATION" in result.output
        assert "net_profit" in result.output

        assert "reminder armed" in run("order", "send-proposal", "--id", "1").output
        reminders = run("reminder", "list", "--status", "PENDING")
        assert "Follow up with Acme" in reminders.output

        later = (datetime.now() + timedelta(days=4)).strftime("%Y-%m-%dT%H:%M")
        swept = run("sweep", "run", "--at", later)
        assert swept.exit_code == 0, swept.output
        assert "1 due, 1 processed, 0 cancelled, 0 failed" in swept.output

        inbox = run("notification", "list", "--urgent")
        assert "[REMINDER] Follow up with Acme" in inbox.output
        assert "Unread: 1" in run("notification", "stats").output
        assert "1 notification(s) marked read." in run("notification", "read-all").output

        responded = run("order", "respond", "--id", "1", "--response", "ACCEPTED",
                        "--notes", "Signed")
        assert "PROPOSAL_ACCEPTED" in responded.output
        assert "No reminders found." in run("reminder", "list", "--status", "PENDING").output

    def test_other_user_sees_no_reminders(self, run):
        _seed(run)
        run("order", "create-calculation", "--id", "1")
        run("order", "send-proposal", "--id", "1")
        assert "No reminders found." in run("reminder", "list", user="m2").output

    def test_invalid_log_level(self, run):
        result = run("--log-level", "LOUD", "product", "list")
        assert result.exit_code == 2


class TestReminderCommands:

    def test_add_reschedule_and_stats(self, run):
        added = run("reminder", "add", "--related-type", "order", "--related-id", "1",
                    "--kind", "CALL_CLIENT", "--title", "Call Acme", "--every", "2")
        assert added.exit_code == 0, added.output
        assert "Reminder #1 created" in added.output

        later = (datetime.now() + timedelta(days=5)).strftime("%Y-%m-%dT%H:%M")
        moved = run("reminder", "reschedule", "--id", "1", "--at", later)
        assert moved.exit_code == 0, moved.output
        assert "Reminder #1 next at" in moved.output

        stats = run("reminder", "stats")
        assert "Pending: 1" in stats.output
        assert "Overdue: 0" in stats.output
        assert "Next 7 days:" in stats.output
        assert "Call Acme" in stats.output

    def test_reschedule_without_changes(self, run):
        run("reminder", "add", "--related-type", "CLIENT", "--related-id", "c-1",
            "--title", "Check in")
        result = run("reminder", "reschedule", "--id", "1")
        assert result.exit_code == 1
        assert "Nothing to update" in result.output

    def test_reschedule_someone_elses_reminder(self, run):
        run("reminder", "add", "--related-type", "CLIENT", "--related-id", "c-1",
            "--title", "Check in")
        result = run("reminder", "reschedule", "--id", "1", "--title", "Mine now", user="m2")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_clear_reminder_notifications(self, run):
        soon = (datetime.now() + timedelta(hours=1)).strftime("%Y-%m-%dT%H:%M")
        run("reminder", "add", "--related-type", "CLIENT", "--related-id", "c-1",
            "--title", "Check in", "--at", soon)
        later = (datetime.now() + timedelta(days=1)).strftime("%Y-%m-%dT%H:%M")
        assert "1 processed" in run("sweep", "run", "--at", later).output

        assert "0 message notification(s) cleared." in run(
            "notification", "clear", "--type", "MESSAGE", "--yes").output
        cleared = run("notification", "clear", "--type", "REMINDER", "--yes")
        assert cleared.exit_code == 0, cleared.output
        assert "1 reminder notification(s) cleared." in cleared.output
        assert "No notifications." in run("notification", "list").output
