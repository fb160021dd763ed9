"""Parsing of stored workflow step action configs."""

from dealflow.application.dtos.step_action import (
    CreateTaskAction,
    SendEmailAction,
    UpdateFieldAction,
    WaitForEventAction,
    parse_step_action,
)


def test_send_email_action() -> None:
    action = parse_step_action(
        "send_email", {"template_name": "emd_reminder", "audience": "buyer"}
    )
    assert isinstance(action, SendEmailAction)
    assert action.template_name == "emd_reminder"
    assert action.audience == "buyer"


def test_create_task_action_with_optional_fields() -> None:
    action = parse_step_action("create_task", {"title": "Order appraisal"})
    assert isinstance(action, CreateTaskAction)
    assert action.description is None
    assert action.due_date_offset_days is None


def test_update_field_accepts_any_value() -> None:
    action = parse_step_action("update_field", {"field": "has_hoa", "value": True})
    assert isinstance(action, UpdateFieldAction)
    assert action.value is True


def test_wait_for_event_action() -> None:
    action = parse_step_action("wait_for_event", {"event_type": "emd_received"})
    assert isinstance(action, WaitForEventAction)


def test_stored_action_type_wins_over_config() -> None:
    action = parse_step_action(
        "create_task", {"action_type": "send_email", "title": "Call lender"}
    )
    assert isinstance(action, CreateTaskAction)


def test_invalid_configs_parse_to_none() -> None:
    assert parse_step_action("send_email", {"template_name": "x"}) is None
    assert parse_step_action("create_task", {"title": ""}) is None
    assert parse_step_action("launch_rocket", {"title": "x"}) is None
    assert parse_step_action("send_email", None) is None
    assert parse_step_action(None, {"template_name": "x", "audience": "buyer"}) is None
