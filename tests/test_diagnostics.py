import logging

from cardfix.domain import CardVariant

_NOT_ROUTED = "Action.Execute is not routed"


def _warnings_about_execute(caplog) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.levelno == logging.WARNING and _NOT_ROUTED in r.getMessage()]


def test_diagnostics_warn_for_each_execute_button(make_session, caplog):
    caplog.set_level(logging.INFO, logger="cardfix")
    scheduler, _, host = make_session(variant=CardVariant.EXECUTE, ENABLE_DIAGNOSTICS=True)
    scheduler.run_until_idle()

    assert len(_warnings_about_execute(caplog)) == len(host.latest_card().actions) == 2
    assert any("INBOUND adaptive card 1" in r.getMessage() for r in caplog.records)


def test_fix_runs_before_diagnostics(make_session, caplog):
    caplog.set_level(logging.INFO, logger="cardfix")
    scheduler, _, host = make_session(variant=CardVariant.EXECUTE, fix=True, ENABLE_DIAGNOSTICS=True)
    scheduler.run_until_idle()

    assert _warnings_about_execute(caplog) == []
    assert any("Converted 2 Action.Execute" in r.getMessage() for r in caplog.records)

    host.click("Yes, Allow")
    scheduler.run_until_idle()

    clicks = [r.getMessage() for r in caplog.records if r.name == "cardfix.DiagnosticCardClickInterceptor"]
    assert any("type=Action.Submit" in m and "'Yes, Allow'" in m for m in clicks)
    assert any(r.getMessage().startswith("OUTBOUND message") for r in caplog.records)
