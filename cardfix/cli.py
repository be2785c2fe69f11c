from __future__ import annotations

import json
from collections.abc import Callable

import typer

from cardfix.adapters.mock import MockActivityChannel
from cardfix.cards import build_consent_card
from cardfix.config import Settings, load_settings
from cardfix.domain import CardVariant, ChannelAccount, MessageActivity
from cardfix.logging_setup import setup_logging
from cardfix.middleware import build_activity_interceptors, build_card_click_interceptor
from cardfix.scheduler import LogicalScheduler, run_realtime
from cardfix.transforms import rewrite_card_actions
from cardfix.webchat import ChatHost, describe_outcome

app = typer.Typer(help="cardfix - Action.Execute drop/fix simulator")


def _settings_for(variant: CardVariant, fix: bool, diagnostics: bool) -> Settings:
    return load_settings().model_copy(
        update={"CARD_VARIANT": variant, "ENABLE_EXECUTE_FIX": fix, "ENABLE_DIAGNOSTICS": diagnostics}
    )


def _build_host(settings: Settings, scheduler: LogicalScheduler) -> ChatHost:
    channel = MockActivityChannel(
        settings,
        scheduler,
        activity_interceptors=build_activity_interceptors(settings),
        card_click_interceptor=build_card_click_interceptor(settings),
    )
    user = ChannelAccount(id=settings.USER_ID, name=settings.USER_NAME, role="user")
    return ChatHost(channel, user)


def _format_activity(activity) -> list[str]:
    sender = activity.from_.name if activity.from_ else "?"
    lines = [f"[{activity.id}] {sender}: {getattr(activity, 'text', None) or ''}".rstrip()]
    if isinstance(activity, MessageActivity):
        for card in activity.adaptive_cards():
            for action in card.actions:
                lines.append(f"    [button] {action.title} ({action.type})")
    return lines


@app.callback()
def main(json_logs: bool = typer.Option(False, "--json-logs", help="Enable JSON logs")):
    setup_logging(json_logs=json_logs or load_settings().LOG_JSON)


@app.command()
def demo(
    variant: CardVariant = typer.Option(CardVariant.EXECUTE, "--variant", help="execute|submit"),
    fix: bool = typer.Option(False, "--fix/--no-fix", help="Install the Action.Execute rewrite"),
    diagnostics: bool = typer.Option(False, "--diagnostics", help="Install the logging interceptors"),
    click: str | None = typer.Option("Yes, Allow", "--click", help="Button title to click once the card shows"),
    say: list[str] = typer.Option([], "--say", help="Text to send after the click (repeatable)"),
    realtime: bool = typer.Option(False, "--realtime", help="Play the conversation at wall-clock speed"),
):
    """Run the consent conversation and print the resulting transcript."""
    settings = _settings_for(variant, fix, diagnostics)
    scheduler = LogicalScheduler()
    host = _build_host(settings, scheduler)
    drive: Callable[[], object] = (lambda: run_realtime(scheduler)) if realtime else scheduler.run_until_idle

    drive()
    if click:
        try:
            routed = host.click(click)
        except LookupError as exc:
            raise typer.BadParameter(str(exc), param_hint="--click") from exc
        typer.echo(f"Clicked {click!r}: {'routed' if routed else 'dropped by the renderer'}")
        drive()
    for text in say:
        host.post_text(text)
        drive()

    for activity in host.transcript:
        for line in _format_activity(activity):
            typer.echo(line)
    host.channel.close()


@app.command()
def explain(
    variant: CardVariant = typer.Option(CardVariant.EXECUTE, "--variant"),
    fix: bool = typer.Option(False, "--fix/--no-fix"),
):
    """Say whether card clicks will reach the bot for this configuration."""
    label = "Action.Execute" if variant == CardVariant.EXECUTE else "Action.Submit"
    typer.echo(f"Card type: {label}")
    typer.echo(f"Will clicks work? {describe_outcome(variant, fix)}")


@app.command()
def card(
    variant: CardVariant = typer.Option(CardVariant.EXECUTE, "--variant"),
    fix: bool = typer.Option(False, "--fix/--no-fix", help="Show the card after the rewrite"),
):
    """Print the consent card JSON as the renderer receives it."""
    content = build_consent_card(variant)
    if fix:
        rewrite_card_actions(content)
    typer.echo(json.dumps(content.to_wire(), indent=2, ensure_ascii=False))
