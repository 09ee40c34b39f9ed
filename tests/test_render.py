"""
Test display helpers and view rendering.
"""

from datetime import datetime

from rich.console import Console

from ore_dashboard.dashboard import events as ev
from ore_dashboard.dashboard.render import (
    abbreviate,
    format_local_time,
    get_domain,
    render_accounts,
    render_modal,
    render_summary,
)
from ore_dashboard.dashboard.types import ViewKind


def render_text(renderable) -> str:
    console = Console(width=200, record=True)
    console.print(renderable)
    return console.export_text()


def test_abbreviate():
    assert abbreviate("So11111111111111111111111111111111111111112") == "So11...1112"
    assert abbreviate("short") == "short"


def test_get_domain_truncates_long_hosts():
    assert get_domain("https://api.devnet.solana.com/path") == "api.devnet.solana.com"
    assert len(get_domain("https://" + "a" * 50 + ".com")) == 32
    assert get_domain("not a url") == ""


def test_format_local_time():
    assert format_local_time(0) == datetime.fromtimestamp(0).strftime("%Y-%m-%d %H:%M:%S")


def test_summary_shows_placeholder_without_price(dashboard):
    text = render_text(render_summary(dashboard))

    assert "Number:" in text
    assert "--" in text


def test_accounts_table_marks_unprepared_rows(dashboard, keyring):
    keyring.add("a.json")
    dashboard.registry.add(dashboard.create_account("https://rpc.test", "a.json", 1))

    text = render_text(render_accounts(dashboard))

    assert "loading" in text
    assert "rpc.test" in text


def test_modal_renders_every_view(dashboard, keyring):
    keyring.add("a.json")
    account = dashboard.create_account("https://rpc.test", "a.json", 1)
    dashboard.registry.add(account)

    assert render_modal(dashboard) is None
    for view in ViewKind:
        dashboard.update(ev.OpenModal(view, None if view is ViewKind.DIALOG else account.account_id))
        assert render_modal(dashboard) is not None


def test_claim_confirm_shows_max_when_amount_empty(dashboard, keyring):
    keyring.add("a.json")
    account = dashboard.create_account("https://rpc.test", "a.json", 1)
    dashboard.registry.add(account)
    dashboard.update(ev.OpenModal(ViewKind.CLAIM_CONFIRM, account.account_id))

    assert "MAX available ORE" in render_text(render_modal(dashboard))
