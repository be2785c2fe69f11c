from cardfix.config import Settings
from cardfix.domain import CardVariant, InvokeActivity, MessageActivity, OtherActivity
from cardfix.engine import (
    ALREADY_RESPONDED_TEXT,
    AVAILABILITY_TEXT,
    CARD_PROMPT_TEXT,
    DENIED_TEXT,
    GRANTED_TEXT,
    RESEND_TEXT,
    WAITING_TEXT,
    WELCOME_TEXT,
    ConversationEngine,
)
from cardfix.scheduler import LogicalScheduler


def _engine(**overrides) -> tuple[LogicalScheduler, ConversationEngine, list[MessageActivity]]:
    scheduler = LogicalScheduler()
    emitted: list[MessageActivity] = []
    engine = ConversationEngine(Settings(**overrides), scheduler, emitted.append)
    return scheduler, engine, emitted


def test_welcome_then_card_with_configured_variant():
    scheduler, engine, emitted = _engine(CARD_VARIANT=CardVariant.SUBMIT)
    engine.welcome()

    scheduler.advance(500)
    assert [a.text for a in emitted] == [WELCOME_TEXT]
    scheduler.advance(800)
    assert emitted[-1].text == CARD_PROMPT_TEXT
    card = emitted[-1].adaptive_cards()[0]
    assert {a.type for a in card.actions} == {"Action.Submit"}


def test_allow_confirms_then_lists_slots_after_delay():
    scheduler, engine, emitted = _engine()
    engine.handle_consent_response({"action": "Allow"})

    assert [a.text for a in emitted] == [GRANTED_TEXT]
    scheduler.advance(999)
    assert len(emitted) == 1
    scheduler.advance(1)
    assert [a.text for a in emitted] == [GRANTED_TEXT, AVAILABILITY_TEXT]


def test_second_response_is_absorbed():
    _, engine, emitted = _engine()
    engine.handle_consent_response({"action": "Deny"})
    engine.handle_consent_response({"action": "Deny"})
    engine.handle_consent_response({"action": "Allow"})

    assert [a.text for a in emitted] == [DENIED_TEXT, ALREADY_RESPONDED_TEXT, ALREADY_RESPONDED_TEXT]


def test_unexpected_value_still_marks_answered():
    _, engine, emitted = _engine()
    engine.handle_consent_response({"action": "Maybe"})

    assert engine.answered is True
    assert '"Maybe"' in emitted[0].text


def test_missing_data_is_unexpected_not_an_error():
    _, engine, emitted = _engine()
    engine.process(InvokeActivity(name="adaptiveCard/action", value={}))

    assert engine.answered is True
    assert "wasn't expected" in emitted[0].text


def test_invoke_path_extracts_action_data():
    _, engine, emitted = _engine()
    engine.process(
        InvokeActivity(
            name="adaptiveCard/action",
            value={"action": {"type": "Action.Execute", "verb": "consent", "data": {"action": "Allow"}}},
        )
    )
    assert emitted[0].text == GRANTED_TEXT


def test_invoke_with_other_name_is_ignored():
    _, engine, emitted = _engine()
    engine.process(InvokeActivity(name="signin/verifyState", value={"action": {"data": {"action": "Allow"}}}))
    assert emitted == []
    assert engine.answered is False


def test_reset_clears_answer_and_resends_card():
    scheduler, engine, emitted = _engine()
    engine.handle_consent_response({"action": "Deny"})
    engine.process(MessageActivity(text="Can you ask AGAIN?"))

    assert engine.answered is False
    assert emitted[-1].text == RESEND_TEXT
    scheduler.advance(500)
    assert emitted[-1].text == CARD_PROMPT_TEXT


def test_other_text_prompts_for_response():
    _, engine, emitted = _engine()
    engine.process(MessageActivity(text="hello?"))
    assert [a.text for a in emitted] == [WAITING_TEXT]


def test_unknown_activity_produces_nothing():
    scheduler, engine, emitted = _engine()
    engine.process(OtherActivity(type="typing"))
    engine.process(MessageActivity())
    scheduler.run_until_idle()
    assert emitted == []


def test_resend_consent_card_is_immediate():
    _, engine, emitted = _engine()
    engine.answered = True
    engine.resend_consent_card()
    assert engine.answered is False
    assert emitted[-1].text == CARD_PROMPT_TEXT
